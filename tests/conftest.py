"""
Shared test fixtures and configuration.

Two stand-ins for the backend CLI:

``fake_backend``  writes a real executable shell script, so process
                  spawning, pipes and exit codes are exercised for real.
                  Every invocation appends its arguments to a call log.
``fake_runner``   an in-process ``ProcessRunner`` that answers from a
                  table keyed by the joined argument vector. Used where
                  only the candidate order matters.
"""

from __future__ import annotations

import textwrap
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

import pytest

from dockshim.core.models.execution import ExecutionResult
from dockshim.core.services.process_runner import ProcessRunner

Response = tuple[int, str, str]  # exit code, stdout, stderr


class FakeBackend:
    """An executable script plus the log of argument vectors it was called with."""

    def __init__(self, path: Path, log: Path):
        self.path = path
        self.log = log

    def calls(self) -> list[str]:
        if not self.log.exists():
            return []
        return self.log.read_text().splitlines()


@pytest.fixture
def fake_backend(tmp_path: Path) -> Callable[..., FakeBackend]:
    """Factory: ``fake_backend(body, name="container")`` → FakeBackend."""

    def make(body: str, name: str = "container") -> FakeBackend:
        log = tmp_path / f"{name}.calls"
        path = tmp_path / name
        path.write_text(
            "#!/bin/sh\n"
            f'echo "$*" >> "{log}"\n'
            + textwrap.dedent(body)
        )
        path.chmod(0o755)
        return FakeBackend(path, log)

    return make


class FakeRunner(ProcessRunner):
    """Answers ``run`` from ``responses``; anything unknown gets ``default``."""

    def __init__(self, responses: Mapping[str, Response] | None = None):
        super().__init__("container")
        self.responses: dict[str, Response] = dict(responses or {})
        self.default: Response = (0, "", "")
        self.calls: list[list[str]] = []

    def resolve_executable(self) -> str:
        return "/usr/local/bin/container"

    def run(
        self,
        arguments: Sequence[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        stdin: bytes | None = None,
    ) -> ExecutionResult:
        args = list(arguments)
        self.calls.append(args)
        exit_code, stdout, stderr = self.responses.get(" ".join(args), self.default)
        return ExecutionResult(
            command=self.resolve_executable(),
            arguments=args,
            stdout=stdout,
            stderr=stderr,
            exit_code=exit_code,
        )


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def project_root() -> Path:
    """Return the project root directory."""
    return Path(__file__).parent.parent
