"""JSON formatter for structured output."""

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel

from shv.core.models import DefinitionTarget, HandlerInfo, HandlerUsage, UsageStatistics, ValidationError, ValidationResult
from shv.output.formatters.protocols import BaseFormatter


def _dump(data: Any) -> str:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    elif isinstance(data, list):
        data = [item.model_dump(mode="json") if isinstance(item, BaseModel) else item for item in data]
    return json.dumps(data, indent=2, ensure_ascii=False)


class JsonFormatter(BaseFormatter):
    """Format results as JSON, one document per command."""

    def format_validation(self, result: ValidationResult, project_root: Path) -> str:
        return _dump(result)

    def format_handlers(self, handlers: list[HandlerInfo], project_root: Path) -> str:
        return _dump(handlers)

    def format_file_errors(self, errors: list[ValidationError], file_path: Path, project_root: Path) -> str:
        return _dump({"errors": [error.model_dump(mode="json") for error in errors]})

    def format_statistics(self, stats: UsageStatistics, project_root: Path) -> str:
        return _dump(stats)

    def format_usage(self, usage: HandlerUsage) -> str:
        return _dump(usage)

    def format_definition(self, target: DefinitionTarget) -> str:
        return _dump(target)
