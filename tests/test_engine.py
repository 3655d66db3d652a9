"""
Tests for the container engine facade — candidate order per action,
record mapping, Docker translation and compose helpers.
"""

import json
import threading

import pytest

from dockshim.core.models.settings import Settings
from dockshim.core.services.engine import ContainerEngine
from dockshim.core.services.process_runner import CommandFailed, ProcessRunner

UNKNOWN = "Error: unknown command"


@pytest.fixture
def engine(fake_runner) -> ContainerEngine:
    return ContainerEngine(runner=fake_runner)


class TestConstruction:
    def test_defaults(self):
        engine = ContainerEngine()
        assert engine.container_path == "container"
        assert isinstance(engine.runner, ProcessRunner)

    def test_from_settings(self):
        engine = ContainerEngine.from_settings(
            Settings(container_path="/opt/bin/container", search_dirs=["/opt/bin"]),
        )
        assert engine.container_path == "/opt/bin/container"
        assert engine.runner.search_dirs == ("/opt/bin",)

    def test_repr(self):
        assert "container" in repr(ContainerEngine())


# ── Docker dialect ───────────────────────────────────────────────────


class TestDockerCompatible:
    @pytest.mark.parametrize(
        "command, first_native",
        [
            ("ps --all", ["list", "--all"]),
            ("images", ["image", "list"]),
            ("rm abc123", ["delete", "abc123"]),
            ("rmi nginx:latest", ["image", "delete", "nginx:latest"]),
            ("info", ["system", "status"]),
            ("container inspect web", ["inspect", "web"]),
            ("buildx ls", ["builder", "status"]),
        ],
    )
    def test_accepted_first_candidate_is_only_call(self, engine, fake_runner, command, first_native):
        result = engine.run_docker_compatible(command.split())
        assert result.ok
        assert fake_runner.calls == [first_native]

    def test_ps_fallback(self, engine, fake_runner):
        fake_runner.responses["list --all"] = (1, "", f'{UNKNOWN} "list"')
        fake_runner.responses["ls --all"] = (0, "ID NAME", "")
        result = engine.run_docker_compatible(["ps", "--all"])
        assert result.stdout == "ID NAME"
        assert fake_runner.calls == [["list", "--all"], ["ls", "--all"]]

    def test_literal_docker_spelling_last(self, engine, fake_runner):
        fake_runner.responses["list"] = (1, "", UNKNOWN)
        fake_runner.responses["ls"] = (1, "", UNKNOWN)
        engine.run_docker_compatible(["ps"])
        assert fake_runner.calls[-1] == ["ps"]

    def test_non_compat_failure_does_not_fall_back(self, engine, fake_runner):
        fake_runner.responses["list --all"] = (1, "", "permission denied")
        with pytest.raises(CommandFailed) as exc:
            engine.run_docker_compatible(["ps", "--all"])
        assert exc.value.exit_code == 1
        assert "permission denied" in str(exc.value)
        assert fake_runner.calls == [["list", "--all"]]

    def test_non_compat_failure_as_data(self, engine, fake_runner):
        fake_runner.responses["list --all"] = (1, "", "permission denied")
        result = engine.run_docker_compatible(["ps", "--all"], check_exit_code=False)
        assert result.exit_code == 1
        assert fake_runner.calls == [["list", "--all"]]

    def test_candidates_exposed(self, engine):
        assert engine.docker_compatible_candidates(["rm", "x"]) == [["delete", "x"], ["rm", "x"]]


# ── Generic ──────────────────────────────────────────────────────────


class TestRunCommand:
    @pytest.mark.parametrize("exit_code", [0, 1, 125])
    def test_arguments_round_trip(self, engine, fake_runner, exit_code):
        args = ["run", "--name", "my app", "-e", "FOO=bar baz", "nginx:latest"]
        fake_runner.default = (exit_code, "", "err")
        result = engine.run_command(args, check_exit_code=False)
        assert result.arguments == args
        assert result.exit_code == exit_code

    def test_checked_raises(self, engine, fake_runner):
        fake_runner.default = (2, "", "bad")
        with pytest.raises(CommandFailed):
            engine.run_command(["x"])

    def test_verbatim_no_translation(self, engine, fake_runner):
        engine.run_command(["ps"])
        assert fake_runner.calls == [["ps"]]


# ── Containers ───────────────────────────────────────────────────────


class TestContainers:
    def test_list_json_array(self, engine, fake_runner):
        rows = [
            {"ID": "abc123", "Name": "web", "Image": "nginx", "Status": "running"},
            {"ID": "def456", "Name": "db", "Image": "postgres", "Status": "exited"},
        ]
        fake_runner.responses["list --all --format json"] = (0, json.dumps(rows), "")
        items = engine.list_containers()
        assert [c.name for c in items] == ["web", "db"]
        assert [c.state for c in items] == ["running", "stopped"]

    def test_list_falls_back_to_next_spelling(self, engine, fake_runner):
        fake_runner.responses["list --all --format json"] = (1, "", "unknown flag: --format")
        fake_runner.responses["list -a --format json"] = (0, '{"id": "a"}\n{"id": "b"}\n', "")
        items = engine.list_containers()
        assert [c.id for c in items] == ["a", "b"]
        assert len(fake_runner.calls) == 2

    def test_list_text_output_gives_no_records(self, engine, fake_runner):
        fake_runner.default = (0, "ID  NAME\nabc web\n", "")
        assert engine.list_containers() == []

    def test_list_running_only(self, engine, fake_runner):
        engine.list_containers(all_=False)
        assert fake_runner.calls == [["list", "--format", "json"]]

    def test_lifecycle(self, engine, fake_runner):
        engine.start_container("web")
        engine.stop_container("web")
        engine.kill_container("web")
        assert fake_runner.calls == [["start", "web"], ["stop", "web"], ["kill", "web"]]

    def test_delete_falls_back_to_rm(self, engine, fake_runner):
        fake_runner.responses["delete --force web"] = (1, "", UNKNOWN)
        engine.delete_container("web", force=True)
        assert fake_runner.calls[-1] == ["rm", "--force", "web"]

    def test_failure_raises(self, engine, fake_runner):
        fake_runner.default = (1, "", "no such container")
        with pytest.raises(CommandFailed):
            engine.stop_container("web")

    def test_inspect_trimmed(self, engine, fake_runner):
        fake_runner.responses["inspect web --format json"] = (0, '  [{"id": "web"}]\n', "")
        assert engine.inspect_container("web") == '[{"id": "web"}]'

    def test_logs_stream_arguments(self, engine):
        stream = engine.container_logs("web", follow=False, boot=True)
        assert stream.arguments == ["logs", "--boot", "web"]
        assert not stream.started


# ── Images ───────────────────────────────────────────────────────────


class TestImages:
    def test_list(self, engine, fake_runner):
        rows = [{"Repository": "nginx", "Tag": "latest", "ID": "sha256:1"}]
        fake_runner.responses["image list --format json"] = (0, json.dumps(rows), "")
        images = engine.list_images()
        assert [i.reference for i in images] == ["nginx:latest"]

    def test_pull(self, engine, fake_runner):
        engine.pull_image("alpine:3")
        assert fake_runner.calls == [["image", "pull", "alpine:3"]]

    def test_delete(self, engine, fake_runner):
        engine.delete_image("alpine:3")
        assert fake_runner.calls == [["image", "delete", "alpine:3"]]

    def test_inspect_falls_back(self, engine, fake_runner):
        fake_runner.responses["image inspect alpine --format json"] = (1, "", UNKNOWN)
        fake_runner.responses["image inspect alpine"] = (0, "details\n", "")
        assert engine.inspect_image("alpine") == "details"


# ── System & builder ─────────────────────────────────────────────────


class TestSystemAndBuilder:
    def test_status_json(self, engine, fake_runner):
        fake_runner.responses["system status --format json"] = (0, '{"status": "running", "running": true}', "")
        status = engine.system_status()
        assert status.is_running
        assert status.message == "running"

    def test_status_text_fallback(self, engine, fake_runner):
        fake_runner.responses["system status --format json"] = (1, "", UNKNOWN)
        fake_runner.responses["system status --json"] = (1, "", UNKNOWN)
        fake_runner.responses["system status"] = (0, "apiserver is not running\n", "")
        status = engine.system_status()
        assert not status.is_running
        assert status.message == "apiserver is not running"

    def test_start_stop(self, engine, fake_runner):
        engine.system_start()
        engine.system_stop()
        assert fake_runner.calls == [["system", "start"], ["system", "stop"]]

    def test_system_logs_arguments(self, engine):
        assert engine.system_logs(follow=True).arguments == ["system", "logs", "--follow"]

    def test_builder_status(self, engine, fake_runner):
        fake_runner.responses["builder status --json"] = (0, '{"running": false}', "")
        status = engine.builder_status()
        assert not status.is_running
        assert status.raw == {"running": False}

    def test_builder_start(self, engine, fake_runner):
        engine.builder_start(cpus=2, memory="4g")
        assert fake_runner.calls == [["builder", "start", "--cpus", "2", "--memory", "4g"]]


# ── Compose ──────────────────────────────────────────────────────────


class TestCompose:
    def test_up_with_file_and_project(self, engine, fake_runner):
        engine.compose_up(compose_file="stack.yaml", project_name="demo")
        assert fake_runner.calls == [["compose", "-f", "stack.yaml", "-p", "demo", "up", "-d"]]

    def test_falls_back_to_system_compose(self, engine, fake_runner):
        fake_runner.responses["compose down"] = (1, "", f"{UNKNOWN} \"compose\"")
        result = engine.compose_down()
        assert result.ok
        assert fake_runner.calls == [["compose", "down"], ["system", "compose", "down"]]

    def test_failure_returned_as_data(self, engine, fake_runner):
        fake_runner.default = (1, "", "service web failed to build")
        result = engine.compose_build()
        assert result.exit_code == 1
        assert fake_runner.calls == [["compose", "build"]]

    def test_ps_and_pull(self, engine, fake_runner):
        engine.compose_ps()
        engine.compose_pull()
        engine.compose_down(remove_volumes=True)
        engine.compose_up(detached=False)
        assert fake_runner.calls == [
            ["compose", "ps", "--all"],
            ["compose", "pull"],
            ["compose", "down", "--volumes"],
            ["compose", "up"],
        ]

    def test_logs_stream_candidates(self, engine):
        stream = engine.compose_logs(" web ", project_name="demo")
        assert stream.candidates == [
            ["compose", "-p", "demo", "logs", "--follow", "web"],
            ["system", "compose", "-p", "demo", "logs", "--follow", "web"],
        ]

    def test_logs_without_follow(self, engine):
        stream = engine.compose_logs(follow=False)
        assert stream.candidates[0] == ["compose", "logs"]


# ── Summary & background ─────────────────────────────────────────────


class TestSummary:
    def test_summary(self, engine, fake_runner):
        rows = [{"id": "a", "status": "running"}, {"id": "b", "status": "stopped"}]
        fake_runner.responses["list --all --format json"] = (0, json.dumps(rows), "")
        fake_runner.responses["image list --format json"] = (0, '[{"id": "i"}]', "")
        fake_runner.responses["builder status --json"] = (0, '{"running": true}', "")
        data = engine.summary()
        assert data == {
            "containers": {"total": 2, "running": 1},
            "images": 1,
            "builder": {"running": True, "message": "Running"},
        }


class TestSubmit:
    def test_runs_in_worker_thread(self, engine, fake_runner):
        caller = threading.get_ident()
        with engine:
            future = engine.submit(lambda: (threading.get_ident(), engine.run_command(["ps"])))
            ident, result = future.result(timeout=10)
        assert ident != caller
        assert result.arguments == ["ps"]

    def test_concurrent_calls(self, engine, fake_runner):
        with engine:
            futures = [engine.submit(engine.run_command, ["inspect", str(i)]) for i in range(8)]
            results = [f.result(timeout=10) for f in futures]
        assert sorted(r.arguments[1] for r in results) == [str(i) for i in range(8)]

    def test_close_is_idempotent(self, engine):
        engine.close()
        engine.close()
