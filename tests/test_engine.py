"""End-to-end tests for the analysis pipeline."""

import pytest

from diffgate.analysis import Classification, MappingReader, SkipReason, analyze
from diffgate.config.loader import ConfigError
from diffgate.config.schema import DiffGateConfig
from diffgate.git.diff_parser import DiffParseError


class TestPipeline:
    def test_score_of_ten(self, new_file_diff, score_rs, config):
        result = analyze(
            new_file_diff("src/score.rs", score_rs),
            config,
            MappingReader({"src/score.rs": score_rs}),
        )
        assert result.weighted_score == 10
        assert result.summary.prod_functions == 3
        assert result.summary.prod_structs == 1
        assert result.exceeds_limit is False

    def test_weighted_score_limit(self, new_file_diff, score_rs):
        config = DiffGateConfig()
        config.limits.max_weighted_score = 5
        result = analyze(
            new_file_diff("src/score.rs", score_rs),
            config,
            MappingReader({"src/score.rs": score_rs}),
        )
        assert result.exceeds_limit is True
        (violation,) = result.violated_limits
        assert (violation.name, violation.threshold, violation.observed) == ("max_weighted_score", 5, 10)

    def test_test_path_file(self, new_file_diff, integration_rs, config):
        result = analyze(
            new_file_diff("tests/integration.rs", integration_rs),
            config,
            MappingReader({"tests/integration.rs": integration_rs}),
        )
        (change,) = result.changes
        assert change.classification == Classification.TEST
        assert result.weighted_score == 0

    def test_parse_failure_isolated(self, new_file_diff, broken_rs, score_rs, config):
        text = new_file_diff("src/broken.rs", broken_rs) + new_file_diff("src/score.rs", score_rs)
        reader = MappingReader({"src/broken.rs": broken_rs, "src/score.rs": score_rs})
        result = analyze(text, config, reader)
        assert result.weighted_score == 10
        (skipped,) = result.scope.skipped_files
        assert (skipped.path, skipped.reason) == ("src/broken.rs", SkipReason.PARSE_FAILED)
        assert skipped.reason.value == "parse failed"

    def test_deterministic(self, new_file_diff, lib_rs, score_rs, sample_diff_deleted, config):
        text = new_file_diff("src/lib.rs", lib_rs) + new_file_diff("src/score.rs", score_rs) + sample_diff_deleted
        reader = MappingReader({"src/lib.rs": lib_rs, "src/score.rs": score_rs})
        first = analyze(text, config, reader)
        second = analyze(text, config, reader, workers=3)
        assert first == second
        assert repr(first) == repr(second)

    def test_unicode_line_separator_in_string(self, new_file_diff, config):
        source = "pub fn a() -> &'static str {\n    \"x\u2028y\"\n}\n"
        result = analyze(
            new_file_diff("src/a.rs", source),
            config,
            MappingReader({"src/a.rs": source}),
        )
        (change,) = result.changes
        assert change.lines_added == 3
        assert result.weighted_score == 3

    def test_empty_diff(self, config):
        result = analyze("", config, MappingReader({}))
        assert result.changes == ()
        assert result.weighted_score == 0
        assert result.summary.total_lines_added == 0


class TestFatalErrors:
    def test_malformed_diff_aborts(self, config):
        with pytest.raises(DiffParseError):
            analyze("--- a/x.rs\n+++ b/x.rs\n@@ -1,3 +1,3 @@\n-x\n", config, MappingReader({}))

    def test_invalid_config_rejected_before_analysis(self, new_file_diff, score_rs):
        config = DiffGateConfig()
        config.weights.table[next(iter(config.weights.table))] = -1
        with pytest.raises(ConfigError):
            analyze(new_file_diff("src/score.rs", score_rs), config, MappingReader({}))
