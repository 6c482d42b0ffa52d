"""Starter .diffgate.toml template written by ``diffgate init``."""

DEFAULT_TOML = """\
# diffgate configuration

[classification]
test_features = ["test-utils", "testing", "mock"]
test_paths = ["tests/"]
benchmark_paths = ["benches/"]
example_paths = ["examples/"]
build_scripts = ["build.rs"]
test_modules = ["tests"]
# ignore_paths = ["vendor/", "*.generated.rs"]

[weights]
default = 1               # any (kind, visibility) pair not listed below
function = { public = 3, private = 1 }
struct = { public = 3, private = 1 }
enum = { public = 3, private = 1 }
trait = 4
impl = 2

[limits]
max_prod_units = 30
max_weighted_score = 100
# max_prod_lines = 500    # production lines added
fail_on_exceed = true

[limits.per_kind]
# function = 20

[analysis]
extensions = [".rs"]
on_access_error = "skip"  # skip | abort
workers = 1

[output]
format = "github"         # github | json | human | comment
include_details = true
"""
