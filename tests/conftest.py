"""Shared test fixtures — sample diffs, Rust sources, temp git repos."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path
from typing import Callable

import pytest

from diffgate.config.schema import DiffGateConfig

# Post-change content of src/lib.rs used by most mapping tests.
#   3-7   Point (doc comment included)
#   9-17  impl Point, holding new (10-12) and norm (14-16)
#   19-27 mod tests (cfg(test)), holding builds_point (23-26)
LIB_RS = textwrap.dedent("""\
    use std::fmt;

    /// A point.
    pub struct Point {
        pub x: i32,
        pub y: i32,
    }

    impl Point {
        pub fn new(x: i32, y: i32) -> Self {
            Point { x, y }
        }

        fn norm(&self) -> i32 {
            self.x * self.x + self.y * self.y
        }
    }

    #[cfg(test)]
    mod tests {
        use super::*;

        #[test]
        fn builds_point() {
            assert_eq!(Point::new(1, 2).x, 1);
        }
    }
""")

# Two public functions, one private function, one public struct.
SCORE_RS = textwrap.dedent("""\
    pub fn alpha() -> u32 {
        1
    }

    pub fn beta() -> u32 {
        2
    }

    fn gamma() -> u32 {
        3
    }

    pub struct Delta {
        value: u32,
    }
""")

BROKEN_RS = textwrap.dedent("""\
    fn broken( {
        let x = ;
    }
""")

INTEGRATION_RS = textwrap.dedent("""\
    fn helper() -> u32 {
        42
    }
""")


def make_new_file_diff(path: str, source: str) -> str:
    """A ``git diff`` section adding *source* as a new file at *path*."""
    lines = source.split("\n")
    if lines[-1] == "":
        lines.pop()
    body = "".join(f"+{line}\n" for line in lines)
    return (
        f"diff --git a/{path} b/{path}\n"
        "new file mode 100644\n"
        "index 0000000..1234567\n"
        "--- /dev/null\n"
        f"+++ b/{path}\n"
        f"@@ -0,0 +1,{len(lines)} @@\n"
        f"{body}"
    )


@pytest.fixture
def new_file_diff() -> Callable[[str, str], str]:
    return make_new_file_diff


@pytest.fixture
def config() -> DiffGateConfig:
    return DiffGateConfig()


@pytest.fixture
def lib_rs() -> str:
    return LIB_RS


@pytest.fixture
def score_rs() -> str:
    return SCORE_RS


@pytest.fixture
def broken_rs() -> str:
    return BROKEN_RS


@pytest.fixture
def integration_rs() -> str:
    return INTEGRATION_RS


@pytest.fixture
def sample_diff_method_edit() -> str:
    """One line of ``Point::norm`` in LIB_RS replaced."""
    return textwrap.dedent("""\
        diff --git a/src/lib.rs b/src/lib.rs
        index 1111111..2222222 100644
        --- a/src/lib.rs
        +++ b/src/lib.rs
        @@ -13,5 +13,5 @@ impl Point {

             fn norm(&self) -> i32 {
        -        self.x * self.x
        +        self.x * self.x + self.y * self.y
             }
         }
    """)


@pytest.fixture
def sample_diff_removal_only() -> str:
    """Two lines removed from the body of ``Point::new``; nothing added."""
    return textwrap.dedent("""\
        diff --git a/src/lib.rs b/src/lib.rs
        index 1111111..2222222 100644
        --- a/src/lib.rs
        +++ b/src/lib.rs
        @@ -10,5 +10,3 @@ impl Point {
             pub fn new(x: i32, y: i32) -> Self {
        -        let x = x;
        -        let y = y;
                 Point { x, y }
             }
    """)


@pytest.fixture
def sample_diff_deleted() -> str:
    return textwrap.dedent("""\
        diff --git a/src/old.rs b/src/old.rs
        deleted file mode 100644
        index abc1234..0000000
        --- a/src/old.rs
        +++ /dev/null
        @@ -1,3 +0,0 @@
        -fn old() {
        -    todo!()
        -}
    """)


@pytest.fixture
def sample_diff_binary() -> str:
    """A diff with a binary file."""
    return textwrap.dedent("""\
        diff --git a/assets/logo.png b/assets/logo.png
        new file mode 100644
        Binary files /dev/null and b/assets/logo.png differ
    """)


@pytest.fixture
def sample_diff_rename() -> str:
    """A diff with a renamed file."""
    return textwrap.dedent("""\
        diff --git a/src/old_name.rs b/src/new_name.rs
        similarity index 97%
        rename from src/old_name.rs
        rename to src/new_name.rs
        index abc1234..def5678 100644
        --- a/src/old_name.rs
        +++ b/src/new_name.rs
        @@ -1,0 +2,1 @@
        +// added after rename
    """)


@pytest.fixture
def sample_diff_mode_only() -> str:
    """A diff with only a file mode change."""
    return textwrap.dedent("""\
        diff --git a/script.sh b/script.sh
        old mode 100644
        new mode 100755
    """)


@pytest.fixture
def sample_diff_no_newline() -> str:
    """A diff with 'No newline at end of file' marker."""
    return textwrap.dedent("""\
        diff --git a/src/data.rs b/src/data.rs
        new file mode 100644
        index 0000000..abc1234
        --- /dev/null
        +++ b/src/data.rs
        @@ -0,0 +1 @@
        +const ANSWER: u32 = 42;
        \\ No newline at end of file
    """)


@pytest.fixture
def sample_diff_plain_unified() -> str:
    """``diff -u`` output: no git header, timestamps after the paths."""
    return textwrap.dedent("""\
        --- src/a.rs\t2024-01-01 00:00:00.000000000 +0000
        +++ src/a.rs\t2024-01-02 00:00:00.000000000 +0000
        @@ -1,2 +1,2 @@
        -fn a() {}
        +fn a() -> u8 { 0 }
         fn b() {}
    """)


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository for integration tests."""
    subprocess.run(["git", "init", str(tmp_path)], capture_output=True, check=True)
    subprocess.run(
        ["git", "config", "user.email", "test@test.com"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    subprocess.run(
        ["git", "config", "user.name", "Test"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    # Initial commit
    readme = tmp_path / "README.md"
    readme.write_text("# Test\n")
    subprocess.run(["git", "add", "."], cwd=tmp_path, capture_output=True, check=True)
    subprocess.run(
        ["git", "commit", "-m", "init"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    return tmp_path
