"""
Candidate dispatcher — try argument vectors in order until one works.

A backend may spell an operation differently from what we expect (``list``
vs ``ls``, ``--format json`` vs ``--json``). The dispatcher walks an
ordered candidate list and asks a fallback policy, for every failure,
whether to move on to the next candidate or to stop and report.

Policies:

``always_fall_back``          any failure except a missing program moves
                              on; used for the engine's hand-written
                              candidate lists.
``fall_back_on_compatibility`` only failures whose stderr says the
                              spelling is unsupported move on; used when
                              translating Docker commands.

Buffered runs retry freely. Streaming runs only move on while nothing
has been shown to the consumer: once a candidate's output has been
delivered, a later failure ends the stream with that failure.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterator, Mapping, Sequence

from dockshim.core.models.execution import ExecutionResult, Invocation, OutputLine
from dockshim.core.services.candidates import dedupe
from dockshim.core.services.process_runner import (
    CommandFailed,
    ExecutableNotFound,
    FailedToStart,
    LineStream,
    ProcessRunner,
    ProcessRunnerError,
)

logger = logging.getLogger(__name__)

# stderr fragments meaning "this spelling is not supported here".
COMPATIBILITY_MARKERS = (
    "unknown command",
    "no such command",
    "unknown shorthand flag",
    "unknown flag",
    "flag provided but not defined",
)

# A failing candidate usually explains itself in a line or two of stderr.
# Up to this many leading stderr lines are held back so that an "unknown
# command" message is not shown before we know whether to fall back.
STDERR_HOLD_LINES = 8

FallbackPolicy = Callable[[ProcessRunnerError], bool]


def is_compatibility_failure(stderr: str) -> bool:
    """Whether *stderr* reports an unsupported command or flag spelling."""
    lowered = stderr.lower()
    return any(marker in lowered for marker in COMPATIBILITY_MARKERS)


def always_fall_back(error: ProcessRunnerError) -> bool:
    # A missing program is missing for every spelling.
    return not isinstance(error, ExecutableNotFound)


def fall_back_on_compatibility(error: ProcessRunnerError) -> bool:
    return isinstance(error, CommandFailed) and is_compatibility_failure(error.stderr)


def _no_candidate() -> FailedToStart:
    return FailedToStart("No candidate command succeeded.")


class CandidateDispatcher:
    """Runs candidate lists through a ``ProcessRunner``."""

    def __init__(self, runner: ProcessRunner):
        self.runner = runner

    def invocations(
        self,
        candidates: Sequence[Sequence[str]],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> list[Invocation]:
        """Deduplicated invocations in the order they would be attempted."""
        return [Invocation.of(*args, cwd=cwd, env=env) for args in dedupe(candidates)]

    def run_first_successful(
        self,
        candidates: Sequence[Sequence[str]],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        should_fall_back: FallbackPolicy = always_fall_back,
        check_exit_code: bool = True,
    ) -> ExecutionResult:
        """Return the first candidate result that exits 0.

        A failure the policy does not excuse stops the walk: it is raised,
        or with ``check_exit_code=False`` the failing result is returned.
        When every candidate fails the last error is raised (or the last
        failing result returned when exit codes are not checked).

        Raises:
            CommandFailed / ExecutableNotFound / FailedToStart
        """
        last_error: ProcessRunnerError | None = None
        last_result: ExecutionResult | None = None

        for inv in self.invocations(candidates, cwd=cwd, env=env):
            logger.debug("Trying candidate: %s", " ".join(inv.arguments))
            try:
                result = self.runner.run(inv.arguments, cwd=inv.cwd, env=inv.env)
            except ProcessRunnerError as e:
                if not should_fall_back(e):
                    raise
                last_error = e
                continue

            if result.ok:
                return result

            error = CommandFailed.from_result(result)
            if not should_fall_back(error):
                if check_exit_code:
                    raise error
                return result

            logger.debug("Candidate failed (%d), falling back: %s", result.exit_code, " ".join(inv.arguments))
            last_error = error
            last_result = result

        if last_error is None:
            raise _no_candidate()

        logger.info("No candidate succeeded; last error: %s", str(last_error).splitlines()[0])
        if not check_exit_code and last_result is not None:
            return last_result
        raise last_error

    def stream_first_successful(
        self,
        candidates: Sequence[Sequence[str]],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        should_fall_back: FallbackPolicy = fall_back_on_compatibility,
    ) -> CandidateStream:
        """Stream the first candidate that does not fail before producing output."""
        return CandidateStream(
            self.runner,
            [inv.arguments for inv in self.invocations(candidates, cwd=cwd, env=env)],
            cwd=cwd,
            env=env,
            should_fall_back=should_fall_back,
        )


class CandidateStream:
    """A ``LineStream`` over whichever candidate ends up running.

    Same consumer contract as ``LineStream``: iterate for ``OutputLine``
    items, ``cancel()`` (or leave a ``with`` block) to stop quietly.
    ``arguments`` holds the candidate currently streaming.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        candidates: list[tuple[str, ...]],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        should_fall_back: FallbackPolicy = fall_back_on_compatibility,
    ):
        self.candidates = [list(c) for c in candidates]
        self.arguments: list[str] | None = None
        self.attempts: list[list[str]] = []
        self._runner = runner
        self._cwd = cwd
        self._env = dict(env or {})
        self._should_fall_back = should_fall_back
        self._current: LineStream | None = None
        self._pump: Iterator[OutputLine] | None = None
        self._cancelled = False
        self._owner: int | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def __iter__(self) -> CandidateStream:
        return self

    def __next__(self) -> OutputLine:
        if self._cancelled:
            self._release()
            raise StopIteration
        self._owner = threading.get_ident()
        if self._pump is None:
            self._pump = self._read()
        return next(self._pump)

    def __enter__(self) -> CandidateStream:
        return self

    def __exit__(self, *exc: object) -> None:
        self.cancel()

    def cancel(self) -> None:
        """Safe from any thread; the iterating thread sees the stream end."""
        self._cancelled = True
        current = self._current
        if current is not None:
            current.cancel()
        if self._owner in (None, threading.get_ident()):
            self._release()

    def _release(self) -> None:
        pump, self._pump = self._pump, None
        if pump is not None and not getattr(pump, "gi_running", False):
            pump.close()  # type: ignore[attr-defined]

    def _read(self) -> Iterator[OutputLine]:
        last_error: ProcessRunnerError | None = None

        for args in self.candidates:
            if self._cancelled:
                return
            stream = self._runner.stream(args, cwd=self._cwd, env=self._env)
            self._current = stream
            self.arguments = args
            self.attempts.append(args)
            if self._cancelled:
                self._current = None
                return

            held: list[OutputLine] = []
            committed = False
            try:
                for item in stream:
                    if not committed and item.source == "stderr" and len(held) < STDERR_HOLD_LINES:
                        held.append(item)
                        continue
                    if not committed:
                        committed = True
                        yield from held
                        held.clear()
                    yield item
            except ProcessRunnerError as e:
                if committed or not self._should_fall_back(e):
                    yield from held
                    raise
                logger.debug("Streaming candidate rejected, falling back: %s", " ".join(args))
                last_error = e
                continue
            finally:
                stream.cancel()
                self._current = None

            if not self._cancelled:
                yield from held
            return

        raise last_error or _no_candidate()
