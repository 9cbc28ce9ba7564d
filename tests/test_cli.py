from click.testing import CliRunner

import dignode.cli as cli_module


class _Captured:
    def __init__(self):
        self.kwargs = {}

    def provisioner(self, exit_code=0):
        captured = self

        class FakeProvisioner:
            def __init__(self, **kwargs):
                captured.kwargs.update(kwargs)

            def run(self):
                return exit_code

        return FakeProvisioner


def test_cli_uses_config_and_allows_cli_override(tmp_path, monkeypatch):
    config_file = tmp_path / ".dignode.yml"
    config_file.write_text(
        "working_dir: /srv/dig\n" "ca_dir: /srv/dig/ca\n" "image_tag: '1.2.3'\n",
        encoding="utf-8",
    )

    captured = _Captured()
    monkeypatch.setattr(cli_module, "NodeProvisioner", captured.provisioner())

    runner = CliRunner()
    result = runner.invoke(
        cli_module.main,
        ["--config", str(config_file), "--image-tag", "latest-beta"],
    )

    assert result.exit_code == 0
    assert captured.kwargs["working_dir"] == "/srv/dig"
    assert captured.kwargs["ca_dir"] == "/srv/dig/ca"
    assert captured.kwargs["image_tag"] == "latest-beta"


def test_cli_uses_default_config_file_when_present(tmp_path, monkeypatch):
    (tmp_path / ".dignode.yml").write_text("image_tag: nightly\n", encoding="utf-8")

    captured = _Captured()
    monkeypatch.setattr(cli_module, "NodeProvisioner", captured.provisioner())
    monkeypatch.chdir(tmp_path)

    runner = CliRunner()
    result = runner.invoke(cli_module.main, [])

    assert result.exit_code == 0
    assert captured.kwargs["image_tag"] == "nightly"
    assert captured.kwargs["working_dir"] is None


def test_cli_defaults_image_tag_without_config(tmp_path, monkeypatch):
    captured = _Captured()
    monkeypatch.setattr(cli_module, "NodeProvisioner", captured.provisioner())
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, [])

    assert result.exit_code == 0
    assert captured.kwargs["image_tag"] == "latest-alpha"


def test_cli_propagates_failed_run_exit_code(tmp_path, monkeypatch):
    captured = _Captured()
    monkeypatch.setattr(cli_module, "NodeProvisioner", captured.provisioner(exit_code=1))
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, [])

    assert result.exit_code == 1


def test_cli_rejects_unknown_config_keys(tmp_path, monkeypatch):
    config_file = tmp_path / "bad.yml"
    config_file.write_text("hostname: node.example.com\n", encoding="utf-8")

    captured = _Captured()
    monkeypatch.setattr(cli_module, "NodeProvisioner", captured.provisioner())

    result = CliRunner().invoke(cli_module.main, ["--config", str(config_file)])

    assert result.exit_code != 0
    assert "Unknown configuration keys: hostname" in result.output
    assert captured.kwargs == {}


def test_cli_rejects_invalid_image_tag(tmp_path, monkeypatch):
    captured = _Captured()
    monkeypatch.setattr(cli_module, "NodeProvisioner", captured.provisioner())
    monkeypatch.chdir(tmp_path)

    result = CliRunner().invoke(cli_module.main, ["--image-tag", "latest; rm -rf /"])

    assert result.exit_code != 0
    assert "Invalid image tag" in result.output
    assert captured.kwargs == {}
