"""Base formatter interface for output formatting."""

from pathlib import Path
from typing import Protocol

from shv.core.models import DefinitionTarget, HandlerInfo, HandlerUsage, UsageStatistics, ValidationError, ValidationResult


class BaseFormatter(Protocol):
    """Renders analysis results.

    Each method returns the text to emit; formatters that print directly to the
    terminal return an empty string.
    """

    def format_validation(self, result: ValidationResult, project_root: Path) -> str: ...

    def format_handlers(self, handlers: list[HandlerInfo], project_root: Path) -> str: ...

    def format_file_errors(self, errors: list[ValidationError], file_path: Path, project_root: Path) -> str: ...

    def format_statistics(self, stats: UsageStatistics, project_root: Path) -> str: ...

    def format_usage(self, usage: HandlerUsage) -> str: ...

    def format_definition(self, target: DefinitionTarget) -> str: ...
