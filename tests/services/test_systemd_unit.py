import subprocess

from dignode.models import CredentialPair, NodePaths, RunConfig
from dignode.services.filesystem import FileSystemService
from dignode.services.systemd_unit import SystemdUnitService


class DummyLogger:
    def info(self, *_args, **_kwargs):
        return None

    def debug(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class RecordingRunner:
    def __init__(self, active=False):
        self.active = active
        self.calls = []

    def run(self, cmd, check=True, capture_output=False, **_kwargs):
        self.calls.append(cmd)
        return subprocess.CompletedProcess(cmd, 0, stdout="active (running)\n", stderr="")

    def succeeds(self, cmd, cwd=None):
        self.calls.append(cmd)
        return self.active


def _run_config(working_dir="/opt/dig") -> RunConfig:
    return RunConfig(
        user_name="alice",
        user_home="/home/alice",
        working_dir=working_dir,
        credentials=CredentialPair(username="u", password="p"),
    )


def _service(runner):
    return SystemdUnitService(
        logger=DummyLogger(),
        console=DummyConsole(),
        command_runner=runner,
        filesystem_service=FileSystemService(logger=DummyLogger(), console=DummyConsole()),
    )


def test_render_unit_wraps_compose_lifecycle():
    unit = _service(RecordingRunner()).render_unit(
        _run_config(),
        ["/usr/local/bin/docker-compose", "-f", "/opt/dig/docker-compose.yml"],
    )

    assert "WorkingDirectory=/opt/dig" in unit
    assert "ExecStart=/usr/local/bin/docker-compose -f /opt/dig/docker-compose.yml up" in unit
    assert "ExecStop=/usr/local/bin/docker-compose -f /opt/dig/docker-compose.yml down" in unit
    assert "Restart=always" in unit
    assert "User=alice" in unit
    assert "Group=docker" in unit
    assert "TimeoutStopSec=30" in unit
    assert "Requires=docker.service" in unit
    assert "WantedBy=multi-user.target" in unit


def test_install_writes_unit_and_activates_it(tmp_path):
    runner = RecordingRunner()
    paths = NodePaths.for_run("/home/alice", str(tmp_path), unit_dir=str(tmp_path / "units"))

    unit_file = _service(runner).install(_run_config(str(tmp_path)), paths, ["docker-compose"])

    assert unit_file == str(tmp_path / "units" / "dig@alice.service")
    assert "ExecStart=docker-compose up" in (tmp_path / "units" / "dig@alice.service").read_text(
        encoding="utf-8"
    )
    assert runner.calls == [
        ["systemctl", "daemon-reload"],
        ["systemctl", "enable", "dig@alice.service"],
        ["systemctl", "start", "dig@alice.service"],
        ["systemctl", "--no-pager", "status", "dig@alice.service"],
    ]


def test_stop_existing_only_stops_active_unit():
    inactive = RecordingRunner(active=False)
    _service(inactive).stop_existing("dig@alice.service")
    assert inactive.calls == [["systemctl", "is-active", "--quiet", "dig@alice.service"]]

    active = RecordingRunner(active=True)
    _service(active).stop_existing("dig@alice.service")
    assert active.calls[-1] == ["systemctl", "stop", "dig@alice.service"]
