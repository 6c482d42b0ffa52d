"""Renderers over AnalysisResult: github, json, human, comment."""

from __future__ import annotations

from diffgate.analysis.models import AnalysisResult
from diffgate.config.schema import DiffGateConfig
from diffgate.output import comment, github, json_report, terminal


def render_output(result: AnalysisResult, config: DiffGateConfig, fmt: str) -> str:
    """Render *result* in *fmt* as a string."""
    if fmt == "github":
        return github.render(result)
    if fmt == "json":
        return json_report.render(result, config)
    if fmt == "comment":
        return comment.render(result, config)
    if fmt == "human":
        return terminal.render_text(result, config)
    raise ValueError(f"unknown output format: {fmt}")


__all__ = ["comment", "github", "json_report", "render_output", "terminal"]
