"""Project discovery and handler catalog scanning."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from pathlib import Path

from shv.core.exports import ExportScanner
from shv.core.glob import matches_glob
from shv.core.models import HandlerInfo, ProjectConfig

logger = logging.getLogger(__name__)

MARKER_FILE = "sst.config.ts"
CONFIG_FILE = "tsconfig.json"
SOURCE_EXTENSION = ".ts"
DECLARATION_SUFFIX = ".d.ts"

DEFAULT_INCLUDE = ["**/*.ts"]
DEFAULT_EXCLUDE = ["node_modules/**", "dist/**", "**/*.test.ts"]

IGNORED_DIRS = {"node_modules"}


def _is_walkable_dir(entry: os.DirEntry[str]) -> bool:
    try:
        is_dir = entry.is_dir(follow_symlinks=False)
    except OSError:
        return False
    return is_dir and not entry.name.startswith(".") and entry.name not in IGNORED_DIRS


def _sorted_entries(directory: Path) -> list[os.DirEntry[str]]:
    """Directory entries sorted by name; [] if the directory cannot be listed."""
    try:
        with os.scandir(directory) as it:
            return sorted(it, key=lambda e: e.name)
    except OSError as e:
        logger.warning(f"Skipping directory {directory}: {e}")
        return []


def _find_downward(directory: Path, file_name: str) -> Path | None:
    """Depth-first search for ``file_name`` starting at ``directory``."""
    candidate = directory / file_name
    if candidate.is_file():
        return candidate
    for entry in _sorted_entries(directory):
        if _is_walkable_dir(entry):
            found = _find_downward(Path(entry.path), file_name)
            if found is not None:
                return found
    return None


def should_include_file(relative_path: str, config: ProjectConfig) -> bool:
    """Apply exclude patterns first, then include patterns, to a root-relative path."""
    relative_path = relative_path.replace("\\", "/")
    if not relative_path.endswith(SOURCE_EXTENSION) or relative_path.endswith(DECLARATION_SUFFIX):
        return False

    if any(matches_glob(relative_path, pattern) for pattern in config.exclude_patterns):
        return False

    if config.include_patterns:
        return any(matches_glob(relative_path, pattern) for pattern in config.include_patterns)
    return True


def relative_handler_path(file_path: Path, root: Path) -> str:
    """``<root>/functions/upload.ts`` -> ``functions/upload``."""
    relative = file_path.relative_to(root).as_posix()
    return relative.removesuffix(SOURCE_EXTENSION)


class ProjectFileScanner:
    """Locates the project root and builds the handler catalog.

    Nothing is cached between calls: every scan reads the current disk state.
    """

    def __init__(self, workspace_root: Path | str, export_scanner: ExportScanner | None = None) -> None:
        self.workspace_root = Path(workspace_root).resolve()
        self.export_scanner = export_scanner or ExportScanner()

    def find_project_root(self) -> Path | None:
        """Search below the workspace for the marker file, then walk up its parents."""
        if not self.workspace_root.is_dir():
            logger.warning(f"Workspace is not a directory: {self.workspace_root}")
            return None

        marker = _find_downward(self.workspace_root, MARKER_FILE)
        if marker is not None:
            logger.debug(f"Found project marker at {marker}")
            return marker.parent

        for parent in self.workspace_root.parents:
            if (parent / MARKER_FILE).is_file():
                logger.debug(f"Found project marker in parent directory {parent}")
                return parent

        logger.debug(f"No {MARKER_FILE} found from {self.workspace_root}")
        return None

    def find_project_config(self) -> ProjectConfig | None:
        root = self.find_project_root()
        if root is None:
            return None

        config_path = _find_downward(root, CONFIG_FILE)
        include, exclude = self._load_patterns(config_path)
        marker_path = root / MARKER_FILE

        return ProjectConfig(
            root_path=str(root),
            marker_file_path=str(marker_path) if marker_path.is_file() else None,
            config_file_path=str(config_path) if config_path is not None else None,
            include_patterns=include,
            exclude_patterns=exclude,
        )

    def _load_patterns(self, config_path: Path | None) -> tuple[list[str], list[str]]:
        if config_path is None:
            logger.debug(f"No {CONFIG_FILE} found, using default patterns")
            return list(DEFAULT_INCLUDE), list(DEFAULT_EXCLUDE)

        try:
            data = json.loads(config_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Failed to load {config_path}, using default patterns: {e}")
            return list(DEFAULT_INCLUDE), list(DEFAULT_EXCLUDE)

        if not isinstance(data, dict):
            return list(DEFAULT_INCLUDE), list(DEFAULT_EXCLUDE)
        include = _pattern_list(data.get("include"))
        exclude = _pattern_list(data.get("exclude"))
        # an explicit empty list is kept, only absent values fall back
        return (
            list(DEFAULT_INCLUDE) if include is None else include,
            list(DEFAULT_EXCLUDE) if exclude is None else exclude,
        )

    def iter_project_files(self, config: ProjectConfig) -> Iterator[Path]:
        """Every source file of the project that passes the include/exclude rules."""
        root = Path(config.root_path)
        yield from self._walk(root, root, config)

    def _walk(self, directory: Path, root: Path, config: ProjectConfig) -> Iterator[Path]:
        for entry in _sorted_entries(directory):
            if _is_walkable_dir(entry):
                yield from self._walk(Path(entry.path), root, config)
                continue
            try:
                is_file = entry.is_file(follow_symlinks=False)
            except OSError:
                continue
            if not is_file or not entry.name.endswith(SOURCE_EXTENSION) or entry.name.endswith(DECLARATION_SUFFIX):
                continue

            path = Path(entry.path)
            if should_include_file(path.relative_to(root).as_posix(), config):
                yield path

    def scan_handlers(self, config: ProjectConfig | None = None) -> list[HandlerInfo]:
        """Build the handler catalog: files with at least one exported function."""
        if config is None:
            config = self.find_project_config()
            if config is None:
                return []

        root = Path(config.root_path)
        handlers = []
        for file_path in self.iter_project_files(config):
            exported = self.export_scanner.scan_file(file_path)
            if not exported:
                continue
            handlers.append(
                HandlerInfo(
                    file_path=str(file_path),
                    relative_path=relative_handler_path(file_path, root),
                    exported_functions=exported,
                )
            )

        logger.debug(f"Scanned {len(handlers)} handler files under {root}")
        return handlers


def _pattern_list(value: object) -> list[str] | None:
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        return list(value)
    return None
