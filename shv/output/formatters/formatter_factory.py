from shv.output.formatters.enums import OutputFormat
from shv.output.formatters.json_formatter import JsonFormatter
from shv.output.formatters.protocols import BaseFormatter
from shv.output.formatters.tree_formatter import TreeFormatter


def get_formatter(output_format: OutputFormat) -> BaseFormatter:
    """Get the appropriate formatter for the output format."""
    formatters: dict[OutputFormat, BaseFormatter] = {
        OutputFormat.TREE: TreeFormatter(),
        OutputFormat.JSON: JsonFormatter(),
    }

    return formatters[output_format]
