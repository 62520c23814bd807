"""Tests for include/exclude glob matching."""
import pytest

from shv.core.glob import matches_glob


class TestMatchesGlob:
    @pytest.mark.parametrize(
        "path,pattern",
        [
            ("a/b/c.ts", "a/**/*.ts"),
            ("a/c.ts", "a/**/*.ts"),
            ("functions/upload.ts", "**/*.ts"),
            ("upload.ts", "**/*.ts"),
            ("node_modules/pkg/index.ts", "node_modules/**"),
            ("functions/upload.test.ts", "**/*.test.ts"),
            ("a/x/y/b", "a/**/b"),
            ("x/y/z.ts", "**"),
            ("a/b", "a/**/b"),
            ("functions/upload.ts", "functions/*.ts"),
            ("functions/upload.ts", "functions/up*"),
            ("functions/upload.ts", "*/upload.ts"),
        ],
    )
    def test_matches(self, path, pattern):
        assert matches_glob(path, pattern)

    @pytest.mark.parametrize(
        "path,pattern",
        [
            ("b/c.ts", "a/**/*.ts"),
            ("functions/upload.ts", "**/*.test.ts"),
            ("a/b.ts", "**/*.test.ts"),
            ("functions/nested/upload.ts", "functions/*.ts"),
            ("dist", "dist/*"),
            ("functions/upload.tsx", "**/*.ts"),
            ("lib/upload.ts", "functions/**"),
        ],
    )
    def test_does_not_match(self, path, pattern):
        assert not matches_glob(path, pattern)

    def test_literal_characters_are_not_regex(self):
        """Dots and other regex metacharacters match only themselves."""
        assert matches_glob("sst.config.ts", "sst.config.ts")
        assert not matches_glob("sstxconfig.ts", "sst.config.ts")
        assert not matches_glob("sstxconfigxts", "*.config.ts")
        assert matches_glob("a+b.ts", "a+b.ts")

    def test_segment_wildcard_must_match_whole_segment(self):
        assert not matches_glob("upload.test.ts.bak", "*.ts")
        assert matches_glob("upload.test.ts", "*.ts")

    def test_backslashes_are_normalised(self):
        assert matches_glob("functions\\upload.ts", "functions/*.ts")
        assert matches_glob("functions/upload.ts", "functions\\*.ts")

    def test_trailing_double_star_matches_directory_itself(self):
        assert matches_glob("dist", "dist/**")
        assert matches_glob("dist/a/b.ts", "dist/**")
