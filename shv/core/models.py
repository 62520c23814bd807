"""Data models for handler reference analysis."""

from pydantic import BaseModel, ConfigDict, Field

from shv.core.enums import ErrorKind, HandlerType, WarningKind


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


class HandlerInfo(_Frozen):
    """A source file exporting at least one function-valued binding."""

    file_path: str
    relative_path: str
    exported_functions: list[str] = Field(default_factory=list)

    def handler_paths(self) -> list[str]:
        return [f"{self.relative_path}.{name}" for name in self.exported_functions]


class HandlerContext(_Frozen):
    """One handler path reference found at a construct call site.

    ``position`` and ``end`` are byte offsets of the matched node, ``line`` and
    ``column`` are 1-based. ``context_info`` labels the surrounding construct,
    e.g. ``Function: Upload``.
    """

    type: HandlerType
    position: int
    end: int
    expected_path: str | None
    raw_text: str
    line: int
    column: int
    context_info: str | None = None


class ValidationError(_Frozen):
    """A handler reference that does not resolve against the catalog."""

    kind: ErrorKind
    message: str
    file_path: str
    handler_path: str
    line: int | None = None
    column: int | None = None
    suggestions: list[str] = Field(default_factory=list)


class ValidationWarning(_Frozen):
    kind: WarningKind
    message: str
    file_path: str
    handler_path: str
    line: int | None = None
    column: int | None = None


class ValidationResult(_Frozen):
    """Outcome of validating every reference in a project."""

    is_valid: bool
    errors: list[ValidationError]
    warnings: list[ValidationWarning] = Field(default_factory=list)
    handlers: list[HandlerInfo] = Field(default_factory=list)
    marker_file_path: str | None = None
    config_file_path: str | None = None


class ProjectConfig(_Frozen):
    """Where the project lives and which files belong to it."""

    root_path: str
    marker_file_path: str | None = None
    config_file_path: str | None = None
    include_patterns: list[str]
    exclude_patterns: list[str]


class HandlerLocation(_Frozen):
    file_path: str
    line: int
    column: int
    context_type: HandlerType
    context_info: str


class HandlerUsage(_Frozen):
    handler_path: str
    usage_count: int
    locations: list[HandlerLocation] = Field(default_factory=list)


class UsageStatistics(_Frozen):
    """Aggregated handler usage across a project."""

    total_handlers: int
    total_usages: int
    handler_usages: list[HandlerUsage]
    most_used_handlers: list[HandlerUsage]
    unused_handlers: list[str]


class DefinitionTarget(_Frozen):
    """Where an exported handler function is declared."""

    handler_path: str
    file_path: str
    function_name: str
    line: int
    column: int
    offset: int


class CompletionItem(_Frozen):
    label: str
    insert_text: str
    kind: str
    detail: str
