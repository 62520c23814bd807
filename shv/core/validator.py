"""Validate handler references against the project's handler catalog."""

import logging
from pathlib import Path

from shv.core.enums import ErrorKind, WarningKind
from shv.core.extractor import HandlerContextExtractor
from shv.core.models import HandlerContext, HandlerInfo, ValidationError, ValidationResult, ValidationWarning
from shv.core.protocols import ProgressCallback
from shv.core.scanner import MARKER_FILE, ProjectFileScanner

logger = logging.getLogger(__name__)

SIMILARITY_THRESHOLD = 0.4
MAX_PATH_SUGGESTIONS = 3
MAX_FUNCTION_SUGGESTIONS = 5


def calculate_similarity(first: str, second: str) -> float:
    """Cheap, order-insensitive similarity between two strings in [0, 1+].

    Containment scores ``max(len ratio) * 0.8``; otherwise the shared character set
    is compared against the larger character set.
    """
    if first == second:
        return 1.0
    if not first or not second:
        return 0.0

    if first in second or second in first:
        return max(len(second) / len(first), len(first) / len(second)) * 0.8

    first_chars = set(first)
    second_chars = set(second)
    common = len(first_chars & second_chars)
    return common / max(len(first_chars), len(second_chars))


def find_similar_paths(target: str, available_paths: list[str]) -> list[str]:
    """Catalog paths scoring above the threshold, best first (case-insensitive)."""
    target_lower = target.lower()
    scored = [(path, calculate_similarity(target_lower, path.lower())) for path in available_paths]
    scored = [item for item in scored if item[1] > SIMILARITY_THRESHOLD]
    scored.sort(key=lambda item: item[1], reverse=True)
    return [path for path, _ in scored]


class HandlerValidator:
    """Checks that every handler path in a project points at an exported function."""

    def __init__(
        self,
        workspace_root: Path | str,
        scanner: ProjectFileScanner | None = None,
        extractor: HandlerContextExtractor | None = None,
    ) -> None:
        self.scanner = scanner or ProjectFileScanner(workspace_root)
        self.extractor = extractor or HandlerContextExtractor()

    def validate_project(
        self,
        report_unused: bool = False,
        progress_callback: ProgressCallback | None = None,
    ) -> ValidationResult:
        """
        Validate every project file against a freshly scanned catalog.

        Args:
            report_unused: Add an ``unused-handler`` warning for every catalog
                handler that no file references
            progress_callback: Receives a message per validated file

        Returns:
            ValidationResult; ``is_valid`` is False when no project root exists
        """
        config = self.scanner.find_project_config()
        if config is None:
            return ValidationResult(
                is_valid=False,
                errors=[
                    ValidationError(
                        kind=ErrorKind.FILE_NOT_FOUND,
                        message=f"No SST project found. Make sure {MARKER_FILE} exists in your project.",
                        file_path="",
                        handler_path="",
                    )
                ],
            )

        handlers = self.scanner.scan_handlers(config)
        errors: list[ValidationError] = []
        referenced: set[str] = set()

        for file_path in self.scanner.iter_project_files(config):
            if progress_callback is not None:
                progress_callback.update(f"Validating {file_path.name}")
            contexts = self._read_contexts(file_path)
            if contexts is None:
                errors.append(_read_error(str(file_path)))
                continue
            referenced.update(c.expected_path for c in contexts if c.expected_path is not None)
            errors.extend(self.validate_contexts(str(file_path), contexts, handlers))

        warnings: list[ValidationWarning] = []
        if report_unused:
            warnings = self._unused_warnings(handlers, referenced)

        logger.debug(f"Validation finished with {len(errors)} errors and {len(warnings)} warnings")
        return ValidationResult(
            is_valid=not errors,
            errors=errors,
            warnings=warnings,
            handlers=handlers,
            marker_file_path=config.marker_file_path,
            config_file_path=config.config_file_path,
        )

    def validate_file(
        self,
        file_path: Path | str,
        handlers: list[HandlerInfo],
        source_text: str | None = None,
    ) -> list[ValidationError]:
        """Validate one file; the source is read from disk unless ``source_text`` is given."""
        if source_text is None:
            contexts = self._read_contexts(Path(file_path))
            if contexts is None:
                return [_read_error(str(file_path))]
        else:
            contexts = self.extractor.extract_contexts(source_text, str(file_path))
        return self.validate_contexts(str(file_path), contexts, handlers)

    def validate_contexts(
        self,
        file_path: str,
        contexts: list[HandlerContext],
        handlers: list[HandlerInfo],
    ) -> list[ValidationError]:
        if not contexts:
            return []

        catalog = {handler.relative_path: handler for handler in handlers}
        errors = []
        for context in contexts:
            if context.expected_path is None:
                continue
            error = self.validate_handler_path(file_path, context, catalog)
            if error is not None:
                errors.append(error)
        return errors

    def validate_handler_path(
        self,
        file_path: str,
        context: HandlerContext,
        catalog: dict[str, HandlerInfo],
    ) -> ValidationError | None:
        handler_path = context.expected_path or ""
        location = {"file_path": file_path, "handler_path": handler_path, "line": context.line, "column": context.column}

        path_part, dot, function_name = handler_path.rpartition(".")
        if not dot:
            return ValidationError(
                kind=ErrorKind.INVALID_FORMAT,
                message=(
                    f'Invalid handler format: "{handler_path}". '
                    'Expected format: "path.functionName" (e.g. "functions/upload.handler")'
                ),
                **location,
            )

        handler = catalog.get(path_part)
        if handler is None:
            suggestions = find_similar_paths(path_part, list(catalog))
            return ValidationError(
                kind=ErrorKind.FILE_NOT_FOUND,
                message=f'Handler file not found: "{path_part}.ts". Make sure the file exists in your project.',
                suggestions=suggestions[:MAX_PATH_SUGGESTIONS],
                **location,
            )

        if function_name not in handler.exported_functions:
            available = ", ".join(handler.exported_functions)
            return ValidationError(
                kind=ErrorKind.FUNCTION_NOT_FOUND,
                message=(
                    f'Function "{function_name}" not found in "{path_part}.ts". Available functions: {available}'
                ),
                suggestions=handler.exported_functions[:MAX_FUNCTION_SUGGESTIONS],
                **location,
            )

        return None

    def _read_contexts(self, file_path: Path) -> list[HandlerContext] | None:
        try:
            source_text = file_path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Failed to read {file_path}: {e}")
            return None
        return self.extractor.extract_contexts(source_text, str(file_path))

    def _unused_warnings(self, handlers: list[HandlerInfo], referenced: set[str]) -> list[ValidationWarning]:
        warnings = []
        for handler in handlers:
            for handler_path in handler.handler_paths():
                if handler_path in referenced:
                    continue
                warnings.append(
                    ValidationWarning(
                        kind=WarningKind.UNUSED_HANDLER,
                        message=f'Handler "{handler_path}" is exported but never referenced',
                        file_path=handler.file_path,
                        handler_path=handler_path,
                    )
                )
        return warnings


def _read_error(file_path: str) -> ValidationError:
    return ValidationError(
        kind=ErrorKind.FILE_NOT_FOUND,
        message=f"Error reading file: {file_path}",
        file_path=file_path,
        handler_path="",
    )
