"""Handler usage statistics across a project."""

import logging
from pathlib import Path

from shv.core.extractor import HandlerContextExtractor
from shv.core.models import HandlerLocation, HandlerUsage, UsageStatistics
from shv.core.protocols import ProgressCallback
from shv.core.scanner import ProjectFileScanner

logger = logging.getLogger(__name__)

MOST_USED_LIMIT = 10


class StatisticsAnalyzer:
    """Counts how often each catalog handler is referenced."""

    def __init__(
        self,
        workspace_root: Path | str,
        scanner: ProjectFileScanner | None = None,
        extractor: HandlerContextExtractor | None = None,
    ) -> None:
        self.scanner = scanner or ProjectFileScanner(workspace_root)
        self.extractor = extractor or HandlerContextExtractor()

    def analyze_usage_statistics(self, progress_callback: ProgressCallback | None = None) -> UsageStatistics | None:
        """
        Build usage statistics for the whole project.

        Args:
            progress_callback: Receives a message per analysed file

        Returns:
            UsageStatistics, or None when no project root can be found
        """
        config = self.scanner.find_project_config()
        if config is None:
            return None

        root = Path(config.root_path)
        handlers = self.scanner.scan_handlers(config)

        counts: dict[str, int] = {}
        locations: dict[str, list[HandlerLocation]] = {}
        catalog_paths: list[str] = []
        for handler in handlers:
            for handler_path in handler.handler_paths():
                if handler_path not in counts:
                    catalog_paths.append(handler_path)
                counts[handler_path] = 0
                locations[handler_path] = []

        for file_path in self.scanner.iter_project_files(config):
            if progress_callback is not None:
                progress_callback.update(f"Analyzing {file_path.name}")
            try:
                source_text = file_path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning(f"Failed to analyze file {file_path}: {e}")
                continue

            relative = file_path.relative_to(root).as_posix()
            for context in self.extractor.extract_contexts(source_text, str(file_path)):
                if context.expected_path is None:
                    continue
                location = HandlerLocation(
                    file_path=relative,
                    line=context.line,
                    column=context.column,
                    context_type=context.type,
                    context_info=context.context_info or context.type.label,
                )
                # referenced but not in the catalog still gets an entry
                counts[context.expected_path] = counts.get(context.expected_path, 0) + 1
                locations.setdefault(context.expected_path, []).append(location)

        usages = [
            HandlerUsage(handler_path=path, usage_count=count, locations=locations[path])
            for path, count in counts.items()
        ]
        most_used = sorted((u for u in usages if u.usage_count > 0), key=lambda u: u.usage_count, reverse=True)

        return UsageStatistics(
            total_handlers=len(catalog_paths),
            total_usages=sum(counts.values()),
            handler_usages=usages,
            most_used_handlers=most_used[:MOST_USED_LIMIT],
            unused_handlers=[path for path in catalog_paths if counts[path] == 0],
        )

    def get_handler_usage(self, handler_path: str) -> HandlerUsage | None:
        """Usage entry for one handler path, or None if it is neither exported nor used."""
        stats = self.analyze_usage_statistics()
        if stats is None:
            return None
        for usage in stats.handler_usages:
            if usage.handler_path == handler_path:
                return usage
        return None
