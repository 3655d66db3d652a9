"""
Execution models — what goes into the backend and what comes back.

An Invocation is one concrete argument vector. An ExecutionResult is the
captured outcome of running one to completion. An OutputLine is a single
line delivered while a command is streaming.

All three are immutable values: created per call, owned by the caller,
never cached.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

OutputSource = Literal["stdout", "stderr"]


class Invocation(BaseModel):
    """One argument vector plus optional working directory and env overrides."""

    model_config = ConfigDict(frozen=True)

    arguments: tuple[str, ...]
    cwd: str | None = None
    env: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def of(cls, *arguments: str, cwd: str | None = None, env: dict[str, str] | None = None) -> Invocation:
        return cls(arguments=tuple(arguments), cwd=cwd, env=dict(env or {}))


class ExecutionResult(BaseModel):
    """Outcome of a completed (non-streaming) execution.

    A non-zero ``exit_code`` is data, not an error: the executor only
    raises when the program cannot be found or started.
    """

    model_config = ConfigDict(frozen=True)

    command: str                      # resolved executable path
    arguments: list[str]
    stdout: str = ""
    stderr: str = ""
    exit_code: int = 0
    duration: float = 0.0             # seconds

    @property
    def ok(self) -> bool:
        """Whether the command exited with status 0."""
        return self.exit_code == 0

    def to_dict(self) -> dict:
        return {
            "command": self.command,
            "arguments": list(self.arguments),
            "stdout": self.stdout,
            "stderr": self.stderr,
            "exit_code": self.exit_code,
            "duration": round(self.duration, 3),
        }


class OutputLine(BaseModel):
    """A single line of streamed output, tagged with its channel."""

    model_config = ConfigDict(frozen=True)

    source: OutputSource
    line: str
