"""
Container engine — one method per container-management action.

The engine composes candidate lists (``candidates``), the dispatcher and
the record mappers. It holds exactly one piece of state: which backend
executable to run, fixed at construction. Every call allocates its own
process, buffers and result, so methods may be called concurrently.

Calls block until the backend exits. ``submit`` runs any engine call on
a small worker pool for callers that must not block.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, TypeVar

from dockshim.core.models.execution import ExecutionResult
from dockshim.core.models.records import (
    BuilderStatus,
    ContainerRecord,
    ImageRecord,
    SystemStatus,
)
from dockshim.core.services import candidates
from dockshim.core.services.compose import compose_arguments
from dockshim.core.services.dispatcher import (
    CandidateDispatcher,
    CandidateStream,
    fall_back_on_compatibility,
)
from dockshim.core.services.json_output import decode_records
from dockshim.core.services.process_runner import (
    CommandFailed,
    LineStream,
    ProcessRunner,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_WORKERS = 4


class ContainerEngine:
    """Facade over the backend container CLI."""

    def __init__(
        self,
        container_path: str = "container",
        search_dirs: Sequence[str] = (),
        *,
        runner: ProcessRunner | None = None,
    ):
        self.runner = runner or ProcessRunner(container_path, search_dirs)
        self.dispatcher = CandidateDispatcher(self.runner)
        self._pool: ThreadPoolExecutor | None = None
        self._pool_lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Any) -> ContainerEngine:
        """Build an engine from a ``Settings`` model."""
        return cls(settings.container_path, settings.search_dirs)

    @property
    def container_path(self) -> str:
        return self.runner.executable

    def __repr__(self) -> str:
        return f"<ContainerEngine container_path={self.container_path!r}>"

    # ── Background execution ────────────────────────────────────

    def submit(self, operation: Callable[..., T], *args: Any, **kwargs: Any) -> Future[T]:
        """Run ``operation(*args, **kwargs)`` on the engine's worker pool."""
        with self._pool_lock:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(
                    max_workers=_WORKERS, thread_name_prefix="dockshim",
                )
            pool = self._pool
        return pool.submit(operation, *args, **kwargs)

    def close(self) -> None:
        """Wait for submitted work and release the worker pool."""
        with self._pool_lock:
            pool, self._pool = self._pool, None
        if pool is not None:
            pool.shutdown(wait=True)

    def __enter__(self) -> ContainerEngine:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # ── System ──────────────────────────────────────────────────

    def system_start(self) -> None:
        logger.info("Starting container system services")
        self.dispatcher.run_first_successful(candidates.SYSTEM_START)

    def system_stop(self) -> None:
        logger.info("Stopping container system services")
        self.dispatcher.run_first_successful(candidates.SYSTEM_STOP)

    def system_status(self) -> SystemStatus:
        res = self.dispatcher.run_first_successful(candidates.SYSTEM_STATUS)
        return SystemStatus.from_output(res.stdout)

    def system_logs(self, follow: bool = True) -> LineStream:
        return self.runner.stream(candidates.system_logs(follow))

    # ── Containers ──────────────────────────────────────────────

    def list_containers(self, all_: bool = True) -> list[ContainerRecord]:
        res = self.dispatcher.run_first_successful(candidates.list_containers(all_))
        rows = decode_records(res.stdout)
        if rows is None:
            logger.debug("Container listing was not JSON; returning no records")
            return []
        return [ContainerRecord.from_raw(row) for row in rows]

    def start_container(self, container_id: str) -> None:
        self.dispatcher.run_first_successful(candidates.container_action("start", container_id))

    def stop_container(self, container_id: str) -> None:
        self.dispatcher.run_first_successful(candidates.container_action("stop", container_id))

    def kill_container(self, container_id: str) -> None:
        self.dispatcher.run_first_successful(candidates.container_action("kill", container_id))

    def delete_container(self, container_id: str, force: bool = False) -> None:
        self.dispatcher.run_first_successful(candidates.delete_container(container_id, force))

    def inspect_container(self, container_id: str) -> str:
        res = self.dispatcher.run_first_successful(candidates.inspect_container(container_id))
        return res.stdout.strip()

    def container_logs(self, container_id: str, follow: bool = True, boot: bool = False) -> LineStream:
        return self.runner.stream(candidates.container_logs(container_id, follow, boot))

    # ── Images ──────────────────────────────────────────────────

    def list_images(self) -> list[ImageRecord]:
        res = self.dispatcher.run_first_successful(candidates.LIST_IMAGES)
        rows = decode_records(res.stdout)
        if rows is None:
            logger.debug("Image listing was not JSON; returning no records")
            return []
        return [ImageRecord.from_raw(row) for row in rows]

    def pull_image(self, reference: str) -> None:
        logger.info("Pulling image %s", reference)
        self.dispatcher.run_first_successful(candidates.pull_image(reference))

    def delete_image(self, reference: str, force: bool = False) -> None:
        self.dispatcher.run_first_successful(candidates.delete_image(reference, force))

    def inspect_image(self, reference: str) -> str:
        res = self.dispatcher.run_first_successful(candidates.inspect_image(reference))
        return res.stdout.strip()

    # ── Builder ─────────────────────────────────────────────────

    def builder_status(self) -> BuilderStatus:
        res = self.dispatcher.run_first_successful(candidates.BUILDER_STATUS)
        return BuilderStatus.from_output(res.stdout)

    def builder_start(self, cpus: int | None = None, memory: str | None = None) -> None:
        self.dispatcher.run_first_successful(candidates.builder_start(cpus, memory))

    def builder_stop(self) -> None:
        self.dispatcher.run_first_successful(candidates.BUILDER_STOP)

    # ── Generic ─────────────────────────────────────────────────

    def run_command(
        self,
        arguments: Sequence[str],
        check_exit_code: bool = True,
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
        stdin: bytes | None = None,
    ) -> ExecutionResult:
        """Run *arguments* verbatim.

        With ``check_exit_code=False`` a non-zero exit is returned as data.
        """
        res = self.runner.run(arguments, cwd=cwd, env=env, stdin=stdin)
        if check_exit_code and not res.ok:
            raise CommandFailed.from_result(res)
        return res

    def stream_command(
        self,
        arguments: Sequence[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> LineStream:
        return self.runner.stream(arguments, cwd=cwd, env=env)

    # ── Docker dialect ──────────────────────────────────────────

    def docker_compatible_candidates(self, arguments: Sequence[str]) -> list[list[str]]:
        return candidates.docker_compatible_candidates(arguments)

    def run_docker_compatible(
        self,
        arguments: Sequence[str],
        check_exit_code: bool = True,
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> ExecutionResult:
        """Run a Docker-style command through its native equivalents."""
        return self.dispatcher.run_first_successful(
            candidates.docker_compatible_candidates(arguments),
            cwd=cwd,
            env=env,
            should_fall_back=fall_back_on_compatibility,
            check_exit_code=check_exit_code,
        )

    def stream_docker_compatible(
        self,
        arguments: Sequence[str],
        *,
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> CandidateStream:
        return self.dispatcher.stream_first_successful(
            candidates.docker_compatible_candidates(arguments),
            cwd=cwd,
            env=env,
            should_fall_back=fall_back_on_compatibility,
        )

    def stream_events(self) -> CandidateStream:
        return self.stream_docker_compatible(["events"])

    # ── Compose ─────────────────────────────────────────────────

    def compose(
        self,
        subcommand: Sequence[str],
        *,
        compose_file: str = "",
        project_name: str = "",
        cwd: str | None = None,
    ) -> ExecutionResult:
        """Run a compose subcommand; a non-zero exit is returned as data."""
        args = compose_arguments(compose_file, project_name, subcommand)
        return self.run_docker_compatible(args, check_exit_code=False, cwd=cwd)

    def compose_up(self, detached: bool = True, **options: Any) -> ExecutionResult:
        return self.compose(["up", "-d"] if detached else ["up"], **options)

    def compose_down(self, remove_volumes: bool = False, **options: Any) -> ExecutionResult:
        return self.compose(["down", "--volumes"] if remove_volumes else ["down"], **options)

    def compose_pull(self, **options: Any) -> ExecutionResult:
        return self.compose(["pull"], **options)

    def compose_build(self, **options: Any) -> ExecutionResult:
        return self.compose(["build"], **options)

    def compose_ps(self, **options: Any) -> ExecutionResult:
        return self.compose(["ps", "--all"], **options)

    def compose_logs(
        self,
        service: str = "",
        *,
        follow: bool = True,
        compose_file: str = "",
        project_name: str = "",
        cwd: str | None = None,
    ) -> CandidateStream:
        subcommand = ["logs", "--follow"] if follow else ["logs"]
        if service.strip():
            subcommand.append(service.strip())
        args = compose_arguments(compose_file, project_name, subcommand)
        return self.stream_docker_compatible(args, cwd=cwd)

    # ── Dashboard ───────────────────────────────────────────────

    def summary(self) -> dict:
        """Container/image counts and builder state in one call."""
        containers = self.list_containers(all_=True)
        images = self.list_images()
        builder = self.builder_status()
        return {
            "containers": {
                "total": len(containers),
                "running": sum(1 for c in containers if c.state == "running"),
            },
            "images": len(images),
            "builder": {
                "running": builder.is_running,
                "message": builder.message or ("Running" if builder.is_running else "Stopped"),
            },
        }
