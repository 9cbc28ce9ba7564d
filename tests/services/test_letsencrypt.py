import subprocess

import pytest

from dignode.errors import ProvisioningError
from dignode.models import CertificateLease, NodePaths
from dignode.services.filesystem import FileSystemService
from dignode.services.letsencrypt import (
    CertbotClient,
    IssuanceEvent,
    IssuanceLoop,
    IssuanceState,
    install_lease,
    next_state,
)


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


class ScriptedPrompter:
    def __init__(self, confirms=(), declines=(), texts=()):
        self.confirms = list(confirms)
        self.declines_answers = list(declines)
        self.texts = list(texts)
        self.questions = []

    def confirm(self, question):
        self.questions.append(question)
        return self.confirms.pop(0)

    def declines(self, question):
        self.questions.append(question)
        return self.declines_answers.pop(0)

    def ask_validated(self, question, parse, default=None):
        self.questions.append(question)
        return parse(self.texts.pop(0))


class FakeCertbot(CertbotClient):
    def __init__(self, results):
        super().__init__(logger=DummyLogger(), command_runner=None, live_dir="/etc/letsencrypt/live")
        self.results = list(results)
        self.calls = []

    def issue(self, hostname, email):
        self.calls.append((hostname, email))
        return self.results.pop(0)


class FakeDockerRuntime:
    def __init__(self):
        self.stopped = []

    def stop_service(self, compose_file, service_name):
        self.stopped.append((compose_file, service_name))


def _loop(prompter, certbot, docker=None):
    return IssuanceLoop(
        logger=DummyLogger(),
        console=DummyConsole(),
        prompter=prompter,
        certbot_client=certbot,
        docker_runtime_service=docker or FakeDockerRuntime(),
    )


@pytest.mark.parametrize(
    "state, event, expected",
    [
        (IssuanceState.AWAIT_CONFIRMATION, IssuanceEvent.CONFIRMED, IssuanceState.ISSUING),
        (IssuanceState.AWAIT_CONFIRMATION, IssuanceEvent.NOT_READY, IssuanceState.AWAIT_CONFIRMATION),
        (IssuanceState.AWAIT_CONFIRMATION, IssuanceEvent.SKIP, IssuanceState.ABANDONED),
        (IssuanceState.ISSUING, IssuanceEvent.ISSUED, IssuanceState.SUCCEEDED),
        (IssuanceState.ISSUING, IssuanceEvent.FAILED_RETRY, IssuanceState.AWAIT_CONFIRMATION),
        (IssuanceState.ISSUING, IssuanceEvent.FAILED_ABANDON, IssuanceState.ABANDONED),
    ],
)
def test_next_state_transitions(state, event, expected):
    assert next_state(state, event) is expected


def test_next_state_rejects_transition_out_of_terminal_state():
    with pytest.raises(ProvisioningError, match="Invalid certificate issuance transition"):
        next_state(IssuanceState.SUCCEEDED, IssuanceEvent.CONFIRMED)


def test_declined_confirmations_do_not_count_as_issuance_attempts():
    prompter = ScriptedPrompter(
        confirms=[False, False, False, False, False, False, True],
        texts=["ops@example.com"],
    )
    certbot = FakeCertbot(results=[True])
    docker = FakeDockerRuntime()
    loop = _loop(prompter, certbot, docker)

    lease = loop.run("node.example.com", "/opt/dig/docker-compose.yml")

    assert loop.attempts == 1
    assert certbot.calls == [("node.example.com", "ops@example.com")]
    assert docker.stopped == [("/opt/dig/docker-compose.yml", "reverse-proxy")]
    assert lease == CertificateLease(
        domain="node.example.com",
        fullchain_path="/etc/letsencrypt/live/node.example.com/fullchain.pem",
        privkey_path="/etc/letsencrypt/live/node.example.com/privkey.pem",
    )


def test_skip_when_not_confirmed_abandons_without_issuing():
    prompter = ScriptedPrompter(confirms=[False, True])
    certbot = FakeCertbot(results=[])
    loop = _loop(prompter, certbot)

    assert loop.run("node.example.com", "docker-compose.yml") is None
    assert loop.attempts == 0
    assert certbot.calls == []


def test_failed_issuance_retries_unless_explicitly_declined():
    prompter = ScriptedPrompter(
        confirms=[True, True],
        declines=[False],
        texts=["ops@example.com", "ops@example.com"],
    )
    certbot = FakeCertbot(results=[False, True])
    loop = _loop(prompter, certbot)

    lease = loop.run("node.example.com", "docker-compose.yml")

    assert lease is not None
    assert loop.attempts == 2


def test_failed_issuance_abandons_on_explicit_no():
    prompter = ScriptedPrompter(confirms=[True], declines=[True], texts=["ops@example.com"])
    certbot = FakeCertbot(results=[False])
    loop = _loop(prompter, certbot)

    assert loop.run("node.example.com", "docker-compose.yml") is None
    assert loop.attempts == 1


class RecordingRunner:
    def __init__(self, existing_crontab="", crontab_returncode=0):
        self.existing_crontab = existing_crontab
        self.crontab_returncode = crontab_returncode
        self.calls = []

    def run(self, cmd, check=True, capture_output=False, input_text=None, **_kwargs):
        self.calls.append((cmd, input_text))
        if cmd == ["crontab", "-l"]:
            return subprocess.CompletedProcess(cmd, self.crontab_returncode, stdout=self.existing_crontab, stderr="")
        return subprocess.CompletedProcess(cmd, 0, stdout="", stderr="")


def test_certbot_issue_uses_standalone_non_interactive_mode():
    runner = RecordingRunner()
    client = CertbotClient(logger=DummyLogger(), command_runner=runner)

    assert client.issue("node.example.com", "ops@example.com") is True
    assert runner.calls[0][0] == [
        "certbot",
        "certonly",
        "--standalone",
        "-d",
        "node.example.com",
        "--non-interactive",
        "--agree-tos",
        "--email",
        "ops@example.com",
    ]


def test_register_renewal_appends_to_existing_crontab():
    runner = RecordingRunner(existing_crontab="15 * * * * /usr/bin/backup\n")
    client = CertbotClient(logger=DummyLogger(), command_runner=runner)

    assert client.register_renewal("docker-compose stop reverse-proxy", "docker-compose up -d reverse-proxy")

    cmd, written = runner.calls[-1]
    assert cmd == ["crontab", "-"]
    lines = written.splitlines()
    assert lines[0] == "15 * * * * /usr/bin/backup"
    assert lines[1] == (
        "0 0 * * * certbot renew --pre-hook 'docker-compose stop reverse-proxy' "
        "--post-hook 'docker-compose up -d reverse-proxy'"
    )


def test_register_renewal_is_not_duplicated():
    client = CertbotClient(logger=DummyLogger(), command_runner=None)
    entry = client.renewal_entry("pre", "post")
    runner = RecordingRunner(existing_crontab=entry + "\n")
    client.command_runner = runner

    assert client.register_renewal("pre", "post") is False
    assert [cmd for cmd, _ in runner.calls] == [["crontab", "-l"]]


def test_register_renewal_handles_missing_crontab():
    runner = RecordingRunner(existing_crontab="", crontab_returncode=1)
    client = CertbotClient(logger=DummyLogger(), command_runner=runner)

    assert client.register_renewal("pre", "post") is True
    assert runner.calls[-1][1] == client.renewal_entry("pre", "post") + "\n"


def test_install_lease_copies_chain_and_key(tmp_path):
    live_dir = tmp_path / "live" / "node.example.com"
    live_dir.mkdir(parents=True)
    (live_dir / "fullchain.pem").write_text("CHAIN", encoding="utf-8")
    (live_dir / "privkey.pem").write_text("KEY", encoding="utf-8")
    paths = NodePaths.for_run(str(tmp_path / "home"), str(tmp_path))
    (tmp_path / "home" / ".dig" / "remote" / ".nginx" / "certs").mkdir(parents=True)
    lease = CertificateLease(
        domain="node.example.com",
        fullchain_path=str(live_dir / "fullchain.pem"),
        privkey_path=str(live_dir / "privkey.pem"),
    )

    installed = install_lease(
        lease,
        paths,
        FileSystemService(logger=DummyLogger(), console=DummyConsole()),
    )

    assert open(installed.fullchain_path, encoding="utf-8").read() == "CHAIN"
    assert open(installed.privkey_path, encoding="utf-8").read() == "KEY"
    assert installed.fullchain_path.startswith(paths.nginx_certs_dir)


def test_attempts_are_counted_per_run():
    prompter = ScriptedPrompter(
        confirms=[True, True],
        declines=[True, True],
        texts=["ops@example.com", "ops@example.com"],
    )
    loop = _loop(prompter, FakeCertbot(results=[False, False]), FakeDockerRuntime())

    assert loop.run("node.example.com", "/opt/dig/docker-compose.yml") is None
    assert loop.run("node.example.com", "/opt/dig/docker-compose.yml") is None

    assert loop.attempts == 1
