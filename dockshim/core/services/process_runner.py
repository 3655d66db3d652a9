"""
Process runner — the single place where the backend CLI is spawned.

Two modes:

``run``     runs the program to completion and captures stdout/stderr.
            A non-zero exit is reported in ``ExecutionResult.exit_code``;
            only a missing or unstartable program raises.

``stream``  returns a ``LineStream``: a lazy, cancellable iterator of
            ``OutputLine`` items read from both pipes as bytes arrive.
            Each pipe has its own byte buffer, a line is emitted every
            time a ``\\n`` is found and the unterminated remainder is
            emitted when the pipe closes. A non-zero exit ends the
            iteration with ``CommandFailed`` carrying all stderr seen.
            Cancelling ends the iteration quietly and kills the child
            together with anything it started.

Both stdout and stderr are read concurrently with ``selectors`` so a
chatty stderr can never dead-lock a blocked stdout (compose and image
pulls report progress on stderr).
"""

from __future__ import annotations

import logging
import os
import selectors
import signal
import subprocess
import threading
import time
from collections.abc import Iterator, Mapping, Sequence

from dockshim.core.models.execution import ExecutionResult, OutputLine

logger = logging.getLogger(__name__)

# Conventional install locations searched after $PATH. GUI launchers and
# service managers often start us with a minimal PATH.
DEFAULT_SEARCH_DIRS = (
    "/usr/bin",
    "/bin",
    "/usr/sbin",
    "/sbin",
    "/usr/local/bin",
    "/opt/homebrew/bin",
)

_READ_CHUNK = 64 * 1024
_TERMINATE_GRACE = 5.0


# ── Errors ──────────────────────────────────────────────────────────


class ProcessRunnerError(Exception):
    """Base class for backend execution failures."""


class ExecutableNotFound(ProcessRunnerError):
    """The configured backend program could not be located."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Executable not found: {name}")


class FailedToStart(ProcessRunnerError):
    """Process creation failed for a reason other than a missing program."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"Failed to start process: {message}")


class CommandFailed(ProcessRunnerError):
    """The child ran and exited with a non-zero status."""

    def __init__(self, command: str, arguments: Sequence[str], exit_code: int, stderr: str):
        self.command = command
        self.arguments = list(arguments)
        self.exit_code = exit_code
        self.stderr = stderr
        super().__init__(self._describe())

    @classmethod
    def from_result(cls, result: ExecutionResult) -> CommandFailed:
        return cls(result.command, result.arguments, result.exit_code, result.stderr)

    def _describe(self) -> str:
        args = " ".join(self.arguments)
        header = f"Command failed ({self.exit_code}): {self.command} {args}".rstrip()
        tail = self.stderr.strip()
        return f"{header}\n\n{tail}" if tail else header


# ── Helpers ─────────────────────────────────────────────────────────


def _is_executable(path: str) -> bool:
    return os.path.isfile(path) and os.access(path, os.X_OK)


def _merged_env(overrides: Mapping[str, str] | None) -> dict[str, str]:
    env = os.environ.copy()
    if overrides:
        env.update(overrides)
    return env


def _decode(data: bytes) -> str:
    """UTF-8 decode, dropping malformed bytes."""
    return data.decode("utf-8", errors="ignore")


def _split_lines(buffer: bytearray) -> list[str]:
    """Pop every complete line off *buffer* (newline stripped)."""
    lines: list[str] = []
    while True:
        idx = buffer.find(b"\n")
        if idx < 0:
            break
        lines.append(_decode(bytes(buffer[:idx])))
        del buffer[: idx + 1]
    return lines


def _signal_group(proc: subprocess.Popen[bytes], sig: int) -> None:
    """Signal the session the child leads (it was started with a new one)."""
    try:
        os.killpg(proc.pid, sig)
    except (ProcessLookupError, PermissionError):
        # Group already gone (or only zombies left).
        logger.debug("No process group to signal for pid=%s", proc.pid)


# ── Runner ──────────────────────────────────────────────────────────


class ProcessRunner:
    """Run one backend executable with varying argument vectors.

    The executable name and search directories are fixed at construction;
    nothing else is shared between calls, so one runner can be used from
    several threads at once.
    """

    def __init__(self, executable: str = "container", search_dirs: Sequence[str] = ()):
        self.executable = executable
        self.search_dirs = tuple(search_dirs)

    def __repr__(self) -> str:
        return f"<ProcessRunner executable={self.executable!r}>"

    def resolve_executable(self) -> str:
        """Locate the backend program.

        An explicit path is used as-is when executable; otherwise $PATH
        is searched, then the conventional install directories.

        Raises:
            ExecutableNotFound: If no executable candidate exists.
        """
        name = self.executable
        if os.sep in name or (os.altsep and os.altsep in name):
            if _is_executable(name):
                return os.path.abspath(name)

        path_dirs = [d for d in os.environ.get("PATH", "").split(os.pathsep) if d]
        for directory in (*path_dirs, *DEFAULT_SEARCH_DIRS, *self.search_dirs):
            candidate = os.path.join(directory, name)
            if _is_executable(candidate):
                return candidate

        raise ExecutableNotFound(name)

    # ── One-shot ────────────────────────────────────────────────

    def run(
        self,
        arguments: Sequence[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        stdin: bytes | None = None,
    ) -> ExecutionResult:
        """Run to completion and capture output.

        Raises:
            ExecutableNotFound: Program could not be located.
            FailedToStart: Program could not be started.
        """
        command = self.resolve_executable()
        args = list(arguments)
        logger.debug("Running: %s %s (cwd=%s)", command, " ".join(args), cwd)

        start = time.monotonic()
        try:
            completed = subprocess.run(
                [command, *args],
                cwd=cwd,
                env=_merged_env(env),
                input=stdin,
                stdin=None if stdin is not None else subprocess.DEVNULL,
                capture_output=True,
            )
        except OSError as e:
            raise FailedToStart(str(e)) from e

        result = ExecutionResult(
            command=command,
            arguments=args,
            stdout=_decode(completed.stdout),
            stderr=_decode(completed.stderr),
            exit_code=completed.returncode,
            duration=time.monotonic() - start,
        )
        logger.debug("Exit %d after %.2fs: %s", result.exit_code, result.duration, " ".join(args))
        return result

    def run_checked(
        self,
        arguments: Sequence[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        stdin: bytes | None = None,
    ) -> ExecutionResult:
        """Like ``run`` but raise ``CommandFailed`` on a non-zero exit."""
        result = self.run(arguments, cwd=cwd, env=env, stdin=stdin)
        if not result.ok:
            raise CommandFailed.from_result(result)
        return result

    # ── Streaming ───────────────────────────────────────────────

    def stream(
        self,
        arguments: Sequence[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> LineStream:
        """Return a lazy stream of output lines. Nothing is spawned until
        the first item is requested."""
        return LineStream(self, list(arguments), cwd=cwd, env=env)

    def _spawn(
        self,
        arguments: list[str],
        cwd: str | None,
        env: Mapping[str, str] | None,
    ) -> tuple[str, subprocess.Popen[bytes]]:
        command = self.resolve_executable()
        logger.debug("Streaming: %s %s (cwd=%s)", command, " ".join(arguments), cwd)
        try:
            proc = subprocess.Popen(
                [command, *arguments],
                cwd=cwd,
                env=_merged_env(env),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                bufsize=0,
                start_new_session=True,
            )
        except OSError as e:
            raise FailedToStart(str(e)) from e
        return command, proc


class LineStream:
    """Cancellable iterator of ``OutputLine`` for one streaming command.

    The stream owns its child process and both line buffers. The child
    runs in its own session, so cancelling signals every process the
    backend started, not just the direct child.

    ``cancel()`` may be called from any thread. It flags the stream,
    signals the process group and wakes a reader blocked in ``select()``;
    the iteration then ends without an error. Generator cleanup stays on
    the iterating thread.

    Lines from one pipe keep their order. Relative order between stdout
    and stderr follows arrival and is not guaranteed.
    """

    def __init__(
        self,
        runner: ProcessRunner,
        arguments: list[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ):
        self.arguments = arguments
        self.cwd = cwd
        self.env = dict(env or {})
        self.lines_delivered = 0
        self._runner = runner
        self._pump: Iterator[OutputLine] | None = None
        self._process: subprocess.Popen[bytes] | None = None
        self._spawned = False
        self._cancelled = False
        self._finished = False
        self._owner: int | None = None
        self._wake_fd: int | None = None
        self._lock = threading.Lock()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def started(self) -> bool:
        """Whether the child process was spawned."""
        return self._spawned

    def __iter__(self) -> LineStream:
        return self

    def __next__(self) -> OutputLine:
        if self._finished:
            raise StopIteration
        if self._cancelled:
            self._release()
            raise StopIteration
        self._owner = threading.get_ident()
        if self._pump is None:
            self._pump = self._read()
        try:
            item = next(self._pump)
        except BaseException:
            self._finished = True
            raise
        self.lines_delivered += 1
        return item

    def __enter__(self) -> LineStream:
        return self

    def __exit__(self, *exc: object) -> None:
        self.cancel()

    def cancel(self) -> None:
        """Stop the stream: flag it, wake the reader, signal the child's group."""
        if self._finished and self._process is None:
            return
        with self._lock:
            first = not self._cancelled
            self._cancelled = True
            proc = self._process
            if proc is not None and proc.poll() is None:
                _signal_group(proc, signal.SIGTERM)
            if first and self._wake_fd is not None:
                os.write(self._wake_fd, b"\0")
        if self._owner in (None, threading.get_ident()):
            self._release()

    def _release(self) -> None:
        pump, self._pump = self._pump, None
        self._finished = True
        if pump is not None and not getattr(pump, "gi_running", False):
            pump.close()  # type: ignore[attr-defined]

    def _read(self) -> Iterator[OutputLine]:
        wake_r, wake_w = os.pipe()
        with self._lock:
            self._wake_fd = wake_w
        sel = selectors.DefaultSelector()
        proc: subprocess.Popen[bytes] | None = None
        try:
            if self._cancelled:
                return
            command, proc = self._runner._spawn(self.arguments, self.cwd, self.env)
            self._process = proc
            self._spawned = True

            buffers = {"stdout": bytearray(), "stderr": bytearray()}
            stderr_seen = bytearray()
            assert proc.stdout is not None and proc.stderr is not None
            sel.register(wake_r, selectors.EVENT_READ, "wake")
            sel.register(proc.stdout, selectors.EVENT_READ, "stdout")
            sel.register(proc.stderr, selectors.EVENT_READ, "stderr")

            while len(sel.get_map()) > 1:
                if self._cancelled:
                    return
                for key, _ in sel.select():
                    source = key.data
                    if source == "wake":
                        return
                    chunk = os.read(key.fd, _READ_CHUNK)
                    buffer = buffers[source]

                    if not chunk:
                        sel.unregister(key.fileobj)
                        if buffer:
                            tail = _decode(bytes(buffer))
                            buffer.clear()
                            yield OutputLine(source=source, line=tail)
                        continue

                    if source == "stderr":
                        stderr_seen += chunk
                    buffer += chunk
                    for line in _split_lines(buffer):
                        yield OutputLine(source=source, line=line)
                        if self._cancelled:
                            return

            exit_code = proc.wait()
        finally:
            sel.close()
            with self._lock:
                self._wake_fd = None
                os.close(wake_w)
                os.close(wake_r)
            if proc is not None:
                self._stop_process(proc)

        if exit_code != 0 and not self._cancelled:
            raise CommandFailed(command, self.arguments, exit_code, _decode(bytes(stderr_seen)))

    def _stop_process(self, proc: subprocess.Popen[bytes]) -> None:
        if proc.poll() is None:
            # Consumer went away before the child finished.
            self._cancelled = True
            logger.debug("Terminating streaming child pid=%s", proc.pid)
            _signal_group(proc, signal.SIGTERM)
            try:
                proc.wait(timeout=_TERMINATE_GRACE)
            except subprocess.TimeoutExpired:
                _signal_group(proc, signal.SIGKILL)
                proc.wait()
        if self._cancelled:
            # Descendants can outlive the leader and keep the pipes open.
            _signal_group(proc, signal.SIGKILL)
        for pipe in (proc.stdout, proc.stderr):
            if pipe is not None:
                pipe.close()
        self._process = None
