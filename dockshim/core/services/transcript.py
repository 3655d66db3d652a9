"""
Human-readable transcripts of backend runs.

Used by the CLI to print what was requested, what was actually executed
after translation, and what came back.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Sequence

from dockshim.core.models.execution import ExecutionResult, OutputLine


def render_result(result: ExecutionResult, requested: Sequence[str] | None = None) -> str:
    """Render a run as a transcript.

    When *requested* differs from what ran (a translated Docker command)
    both are shown.
    """
    shown = list(requested) if requested is not None else result.arguments
    lines = [f"$ docker {' '.join(shown)}".rstrip()]
    if requested is not None and list(requested) != result.arguments:
        lines.append(f"executed: {result.command} {' '.join(result.arguments)}".rstrip())
    lines.append(f"exit code: {result.exit_code}")
    lines.append(f"duration: {result.duration:.2f}s")

    stdout = result.stdout.strip()
    stderr = result.stderr.strip()
    if stdout:
        lines += ["", "stdout:", stdout]
    if stderr:
        lines += ["", "stderr:", stderr]
    return "\n".join(lines)


def tail_lines(stream: Iterable[OutputLine], max_lines: int) -> list[OutputLine]:
    """Consume *stream* keeping only the last *max_lines* items."""
    if max_lines < 1:
        raise ValueError("max_lines must be at least 1")
    return list(deque(stream, maxlen=max_lines))
