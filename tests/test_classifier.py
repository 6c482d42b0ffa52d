"""Tests for the production / non-production classifier."""

import pytest

from diffgate.analysis.classifier import classify, is_cfg_test, path_matches
from diffgate.analysis.models import Classification
from diffgate.config.schema import ClassificationConfig
from diffgate.units.models import CodeUnit, LineSpan, ModuleFrame, UnitKind, Visibility


def _unit(name="run", kind=UnitKind.FUNCTION, attributes=(), module_path=()):
    return CodeUnit(
        kind=kind,
        visibility=Visibility.PUBLIC,
        name=name,
        qualified_name=name,
        span=LineSpan(1, 3),
        attributes=tuple(attributes),
        module_path=tuple(module_path),
    )


@pytest.fixture
def rules() -> ClassificationConfig:
    return ClassificationConfig()


class TestPathMatching:
    def test_prefix(self):
        assert path_matches("tests/a.rs", "tests/")
        assert path_matches("crates/core/tests/a.rs", "tests/")
        assert not path_matches("src/tests_helper.rs", "tests/")
        assert not path_matches("src/contests/a.rs", "tests/")

    def test_glob(self):
        assert path_matches("src/gen/api.generated.rs", "*.generated.rs")
        assert not path_matches("src/api.rs", "*.generated.rs")


class TestCfgTest:
    @pytest.mark.parametrize("token", ["cfg(test)", "cfg(all(test,unix))", "cfg(any(test,feature=\"x\"))"])
    def test_positive(self, token):
        assert is_cfg_test(token)

    @pytest.mark.parametrize(
        "token",
        ["cfg(not(test))", "cfg(feature=\"test\")", "cfg(all(unix,not(test)))", "cfg_attr(test,derive(Debug))", "test"],
    )
    def test_negative(self, token):
        assert not is_cfg_test(token)


class TestPrecedence:
    def test_plain_production(self, rules):
        assert classify("src/lib.rs", _unit(), rules) == Classification.PRODUCTION

    def test_test_path_wins_over_everything(self, rules):
        unit = _unit(attributes=["derive(Debug)"])
        assert classify("tests/integration.rs", unit, rules) == Classification.TEST

    def test_benchmark_path(self, rules):
        assert classify("benches/speed.rs", _unit(), rules) == Classification.BENCHMARK

    def test_example_outranks_test_marker(self, rules):
        unit = _unit(attributes=["test"])
        assert classify("examples/demo.rs", unit, rules) == Classification.EXAMPLE

    def test_build_script_outranks_test_module(self, rules):
        unit = _unit(module_path=[ModuleFrame("tests", ("cfg(test)",))])
        assert classify("build.rs", unit, rules) == Classification.BUILD_SCRIPT
        assert classify("crates/x/build.rs", unit, rules) == Classification.BUILD_SCRIPT

    def test_example_before_build_script(self, rules):
        assert classify("examples/build.rs", _unit(), rules) == Classification.EXAMPLE

    def test_test_path_before_benchmark_path(self, rules):
        assert classify("benches/tests/a.rs", _unit(), rules) == Classification.TEST

    @pytest.mark.parametrize(
        "marker",
        ["test", "tokio::test", "tokio::test(flavor=\"multi_thread\")", "async_std::test", "rstest", "test_case(1,2)", "cfg(test)"],
    )
    def test_test_markers(self, rules, marker):
        assert classify("src/lib.rs", _unit(attributes=[marker]), rules) == Classification.TEST

    def test_bench_marker(self, rules):
        assert classify("src/lib.rs", _unit(attributes=["bench"]), rules) == Classification.BENCHMARK

    def test_test_marker_before_bench_marker(self, rules):
        unit = _unit(attributes=["bench", "test"])
        assert classify("src/lib.rs", unit, rules) == Classification.TEST

    def test_bench_marker_before_tests_module(self, rules):
        unit = _unit(attributes=["bench"], module_path=[ModuleFrame("tests")])
        assert classify("src/lib.rs", unit, rules) == Classification.BENCHMARK

    def test_module_named_tests(self, rules):
        unit = _unit(module_path=[ModuleFrame("outer"), ModuleFrame("tests")])
        assert classify("src/lib.rs", unit, rules) == Classification.TEST

    def test_module_with_cfg_test(self, rules):
        unit = _unit(module_path=[ModuleFrame("checks", ("cfg(test)",))])
        assert classify("src/lib.rs", unit, rules) == Classification.TEST

    def test_module_unit_checks_itself(self, rules):
        unit = _unit(name="tests", kind=UnitKind.MODULE)
        assert classify("src/lib.rs", unit, rules) == Classification.TEST

    def test_custom_test_modules(self):
        rules = ClassificationConfig(test_modules=["integration"])
        assert classify("src/lib.rs", _unit(module_path=[ModuleFrame("integration")]), rules) == Classification.TEST
        assert classify("src/lib.rs", _unit(module_path=[ModuleFrame("tests")]), rules) == Classification.PRODUCTION

    def test_test_feature(self, rules):
        unit = _unit(attributes=['cfg(feature="mock")'])
        assert classify("src/lib.rs", unit, rules) == Classification.TEST
        unit = _unit(attributes=['cfg_attr(feature="testing",derive(Debug))'])
        assert classify("src/lib.rs", unit, rules) == Classification.TEST

    def test_unconfigured_feature_is_production(self, rules):
        unit = _unit(attributes=['cfg(feature="serde")'])
        assert classify("src/lib.rs", unit, rules) == Classification.PRODUCTION

    def test_negated_feature_is_production(self, rules):
        unit = _unit(attributes=['cfg(not(feature="mock"))'])
        assert classify("src/lib.rs", unit, rules) == Classification.PRODUCTION

    def test_name_is_never_a_signal(self, rules):
        unit = _unit(name="test_parses_input")
        assert classify("src/lib.rs", unit, rules) == Classification.PRODUCTION
