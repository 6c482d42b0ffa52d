"""diffgate — production vs. test change analysis for Rust diffs."""

__version__ = "0.1.0"
