"""Tests for project discovery and handler catalog scanning."""
import os
from pathlib import Path

import pytest

from shv.core.models import ProjectConfig
from shv.core.scanner import (
    DEFAULT_EXCLUDE,
    DEFAULT_INCLUDE,
    ProjectFileScanner,
    relative_handler_path,
    should_include_file,
)
from shv.core.statistics import StatisticsAnalyzer
from shv.core.validator import HandlerValidator


def config(include=None, exclude=None):
    return ProjectConfig(
        root_path="/project",
        include_patterns=DEFAULT_INCLUDE if include is None else include,
        exclude_patterns=DEFAULT_EXCLUDE if exclude is None else exclude,
    )


class TestShouldIncludeFile:
    def test_default_patterns(self):
        assert should_include_file("functions/upload.ts", config())
        assert should_include_file("upload.ts", config())
        assert not should_include_file("functions/upload.test.ts", config())
        assert not should_include_file("node_modules/pkg/index.ts", config())
        assert not should_include_file("dist/functions/upload.ts", config())

    def test_only_typescript_sources(self):
        assert not should_include_file("functions/upload.js", config())
        assert not should_include_file("types/env.d.ts", config())

    def test_exclude_wins_over_include(self):
        cfg = config(include=["functions/**"], exclude=["functions/legacy/**"])
        assert should_include_file("functions/upload.ts", cfg)
        assert not should_include_file("functions/legacy/old.ts", cfg)
        assert not should_include_file("infra/api.ts", cfg)

    def test_empty_include_accepts_everything_not_excluded(self):
        cfg = config(include=[], exclude=[])
        assert should_include_file("anything/at/all.ts", cfg)


def test_relative_handler_path():
    root = Path("/project")
    assert relative_handler_path(root / "functions" / "upload.ts", root) == "functions/upload"
    assert relative_handler_path(root / "sst.config.ts", root) == "sst.config"


class TestFindProjectRoot:
    def test_marker_in_workspace(self, sst_repo):
        assert ProjectFileScanner(sst_repo).find_project_root() == sst_repo.resolve()

    def test_marker_below_workspace(self, sst_repo):
        assert ProjectFileScanner(sst_repo.parent).find_project_root() == sst_repo.resolve()

    def test_marker_above_workspace(self, sst_repo):
        assert ProjectFileScanner(sst_repo / "functions").find_project_root() == sst_repo.resolve()

    def test_nearest_marker_below_is_found_first(self, make_project, tmp_path):
        make_project({"apps/a/sst.config.ts": "", "apps/b/sst.config.ts": ""}, marker=False)
        assert ProjectFileScanner(tmp_path).find_project_root() == (tmp_path / "apps" / "a").resolve()

    def test_no_marker(self, make_project, tmp_path):
        make_project({"functions/upload.ts": "export const handler = () => {};"}, marker=False)
        scanner = ProjectFileScanner(tmp_path)

        assert scanner.find_project_root() is None
        assert scanner.find_project_config() is None
        assert scanner.scan_handlers() == []

    def test_marker_inside_node_modules_is_ignored(self, make_project, tmp_path):
        make_project({"node_modules/pkg/sst.config.ts": ""}, marker=False)
        assert ProjectFileScanner(tmp_path).find_project_root() is None

    def test_workspace_that_is_not_a_directory(self, tmp_path):
        file_path = tmp_path / "file.ts"
        file_path.write_text("", encoding="utf-8")

        assert ProjectFileScanner(file_path).find_project_root() is None
        assert ProjectFileScanner(tmp_path / "missing").find_project_root() is None
        assert ProjectFileScanner(tmp_path / "missing").scan_handlers() == []


class TestFindProjectConfig:
    def test_reads_tsconfig_patterns(self, sst_repo):
        cfg = ProjectFileScanner(sst_repo).find_project_config()

        assert cfg.root_path == str(sst_repo.resolve())
        assert cfg.marker_file_path == str(sst_repo.resolve() / "sst.config.ts")
        assert cfg.config_file_path == str(sst_repo.resolve() / "tsconfig.json")
        assert cfg.include_patterns == ["**/*.ts"]
        assert "scripts/**" in cfg.exclude_patterns

    def test_defaults_without_tsconfig(self, make_project, tmp_path):
        make_project({})
        cfg = ProjectFileScanner(tmp_path).find_project_config()

        assert cfg.config_file_path is None
        assert cfg.include_patterns == DEFAULT_INCLUDE
        assert cfg.exclude_patterns == DEFAULT_EXCLUDE

    def test_malformed_tsconfig_uses_defaults(self, make_project, tmp_path):
        make_project({"tsconfig.json": "{ not json"})
        cfg = ProjectFileScanner(tmp_path).find_project_config()

        assert cfg.config_file_path == str((tmp_path / "tsconfig.json").resolve())
        assert cfg.include_patterns == DEFAULT_INCLUDE
        assert cfg.exclude_patterns == DEFAULT_EXCLUDE

    def test_missing_keys_default_independently(self, make_project, tmp_path):
        make_project({"tsconfig.json": '{"include": ["src/**/*.ts"]}'})
        cfg = ProjectFileScanner(tmp_path).find_project_config()

        assert cfg.include_patterns == ["src/**/*.ts"]
        assert cfg.exclude_patterns == DEFAULT_EXCLUDE

    def test_explicit_empty_exclude_is_kept(self, make_project, tmp_path):
        make_project(
            {
                "tsconfig.json": '{"include": ["**/*.ts"], "exclude": []}',
                "functions/upload.test.ts": "export const handler = () => {};",
            }
        )
        scanner = ProjectFileScanner(tmp_path)
        cfg = scanner.find_project_config()

        assert cfg.exclude_patterns == []
        assert "functions/upload.test" in [h.relative_path for h in scanner.scan_handlers(cfg)]

    def test_explicit_empty_include_accepts_every_source(self, make_project, tmp_path):
        make_project({"tsconfig.json": '{"include": []}', "lib/util.ts": "export const run = () => {};"})
        scanner = ProjectFileScanner(tmp_path)
        cfg = scanner.find_project_config()

        assert cfg.include_patterns == []
        assert cfg.exclude_patterns == DEFAULT_EXCLUDE
        assert "lib/util" in [h.relative_path for h in scanner.scan_handlers(cfg)]


class TestScanHandlers:
    def test_catalog(self, sst_repo):
        handlers = ProjectFileScanner(sst_repo).scan_handlers()
        catalog = {h.relative_path: h.exported_functions for h in handlers}

        assert catalog == {
            "functions/details": ["handler", "handler2"],
            "functions/hono-serverless": ["handler"],
            "functions/unused": ["cleanup"],
            "functions/upload": ["handler"],
            "lib/handler-factory": ["createAWSHandler"],
            "sst.config": ["default"],
        }

    def test_excluded_and_declaration_files_are_skipped(self, sst_repo):
        cfg = ProjectFileScanner(sst_repo).find_project_config()
        files = [p.relative_to(sst_repo.resolve()).as_posix() for p in ProjectFileScanner(sst_repo).iter_project_files(cfg)]

        assert "functions/upload.test.ts" not in files
        assert "scripts/seed.ts" not in files
        assert "types/env.d.ts" not in files
        assert "node_modules/some-pkg/index.ts" not in files
        assert files == sorted(files)

    def test_scan_is_repeatable(self, sst_repo):
        scanner = ProjectFileScanner(sst_repo)
        assert scanner.scan_handlers() == scanner.scan_handlers()

    def test_reflects_disk_changes(self, make_project, tmp_path):
        make_project({"functions/a.ts": "export const handler = () => {};"})
        scanner = ProjectFileScanner(tmp_path)
        assert "functions/b" not in [h.relative_path for h in scanner.scan_handlers()]

        (tmp_path / "functions" / "b.ts").write_text("export const handler = () => {};", encoding="utf-8")
        assert "functions/b" in [h.relative_path for h in scanner.scan_handlers()]

    def test_files_without_function_exports_are_not_handlers(self, make_project, tmp_path):
        make_project({"infra/api.ts": 'export const api = new sst.aws.ApiGatewayV1("Api");'})
        relative_paths = [h.relative_path for h in ProjectFileScanner(tmp_path).scan_handlers()]
        assert "infra/api" not in relative_paths


class TestUnreadableDirectories:
    @pytest.fixture
    def project_with_locked_dir(self, make_project, monkeypatch):
        root = make_project(
            {
                "functions/upload.ts": "export const handler = () => {};",
                "locked/secret.ts": "export const handler = () => {};",
                "infra/queue.ts": 'queue.subscribe("functions/upload.handler");',
            }
        )
        real_scandir = os.scandir

        def scandir(path):
            if Path(path).name == "locked":
                raise PermissionError(13, "Permission denied", str(path))
            return real_scandir(path)

        monkeypatch.setattr(os, "scandir", scandir)
        return root

    def test_siblings_are_still_cataloged(self, project_with_locked_dir):
        catalog = [h.relative_path for h in ProjectFileScanner(project_with_locked_dir).scan_handlers()]

        assert "functions/upload" in catalog
        assert "locked/secret" not in catalog

    def test_siblings_are_still_validated(self, project_with_locked_dir):
        result = HandlerValidator(project_with_locked_dir).validate_project()

        assert result.is_valid
        assert "functions/upload" in [h.relative_path for h in result.handlers]

    def test_siblings_are_still_counted(self, project_with_locked_dir):
        usage = StatisticsAnalyzer(project_with_locked_dir).get_handler_usage("functions/upload.handler")

        assert usage.usage_count == 1
        assert usage.locations[0].file_path == "infra/queue.ts"
