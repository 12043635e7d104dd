"""Tests for command endpoints."""

import subprocess
from unittest import mock

import pytest

from ezbackup.__util__ import RemoteCommandError, exec_subprocess
from ezbackup.commands import Delete, ListDir, MakeDir
from ezbackup.config import Config
from ezbackup.endpoint import (
    Endpoint,
    LocalEndpoint,
    SSHEndpoint,
    choose_endpoint,
    resolve_username,
)


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess([], returncode, stdout, stderr)


class TestExecSubprocess:
    """Tests for exec_subprocess function."""

    def test_returns_output_lines(self):
        with mock.patch("subprocess.run", return_value=completed(stdout="a\nb\n")):
            assert exec_subprocess(["ls"]) == ["a", "b"]

    def test_failure_raises(self):
        with mock.patch(
            "subprocess.run", return_value=completed(1, stderr="permission denied")
        ):
            with pytest.raises(RemoteCommandError) as excinfo:
                exec_subprocess(["rm", "-rf", "/x"])

        error = excinfo.value
        assert error.returncode == 1
        assert error.command == ["rm", "-rf", "/x"]
        assert "rm -rf /x" in str(error)
        assert "permission denied" in str(error)

    def test_tolerated_code(self):
        with mock.patch("subprocess.run", return_value=completed(24)):
            assert exec_subprocess(["rsync"], ok_codes=(0, 24)) == []

    def test_missing_program(self):
        with mock.patch("subprocess.run", side_effect=FileNotFoundError("no rsync")):
            with pytest.raises(RemoteCommandError, match="Could not execute"):
                exec_subprocess(["rsync"])

    def test_without_capture(self):
        with mock.patch("subprocess.run", return_value=completed()) as run:
            assert exec_subprocess(["rsync"], capture_output=False) == []
        assert run.call_args.kwargs["stdout"] is None
        assert run.call_args.kwargs["stderr"] is None


class TestEndpoint:
    """Tests for the Endpoint base class."""

    def test_base_cannot_build_commands(self):
        with pytest.raises(NotImplementedError):
            Endpoint().execute("true")

    def test_repr_is_path(self):
        assert repr(Endpoint(config={"path": "/backups/host"})) == "/backups/host"

    def test_rsync_defaults(self):
        endpoint = Endpoint()
        assert endpoint.rsync_destination("/x") == "/x"
        assert endpoint.rsync_shell_args() == []


class TestLocalEndpoint:
    """Tests for LocalEndpoint."""

    def test_runs_through_sh(self):
        endpoint = LocalEndpoint(config={"path": "/backups"})
        with mock.patch(
            "ezbackup.__util__.exec_subprocess", return_value=["x"]
        ) as exec_mock:
            assert endpoint.execute(ListDir("/backups/h")) == ["x"]
        exec_mock.assert_called_once_with(
            ["sh", "-c", "[ ! -d /backups/h ] || ls -1 /backups/h"]
        )

    def test_accepts_raw_shell_string(self):
        endpoint = LocalEndpoint()
        with mock.patch("ezbackup.__util__.exec_subprocess", return_value=[]) as exec_mock:
            endpoint.execute("echo hi")
        exec_mock.assert_called_once_with(["sh", "-c", "echo hi"])

    def test_dry_run_does_not_execute(self):
        endpoint = LocalEndpoint()
        with mock.patch("ezbackup.__util__.exec_subprocess") as exec_mock:
            assert endpoint.execute(Delete("/backups/h/old"), dry_run=True) == []
        exec_mock.assert_not_called()

    def test_real_commands(self, tmp_path):
        endpoint = LocalEndpoint(config={"path": str(tmp_path)})
        endpoint.execute(MakeDir(str(tmp_path / "host" / "one")))
        endpoint.execute(MakeDir(str(tmp_path / "host" / "two")))
        assert endpoint.execute(ListDir(str(tmp_path / "host"))) == ["one", "two"]

    def test_failing_command(self, tmp_path):
        with pytest.raises(RemoteCommandError):
            LocalEndpoint().execute("exit 3")


class TestSSHEndpoint:
    """Tests for SSHEndpoint."""

    @pytest.fixture
    def endpoint(self):
        return SSHEndpoint(
            "nas.example.com",
            config={"path": "/srv/backups/web1"},
            username="backup",
            ssh_opts=["-p", "2222"],
        )

    def test_login(self, endpoint):
        assert endpoint.login == "backup@nas.example.com"
        assert repr(endpoint) == "(SSH) backup@nas.example.com:/srv/backups/web1"

    def test_command_is_single_remote_string(self, endpoint):
        with mock.patch("ezbackup.__util__.exec_subprocess", return_value=[]) as exec_mock:
            endpoint.execute(Delete("/srv/backups/web1/old", sudo=True))
        exec_mock.assert_called_once_with(
            [
                "ssh",
                "-p",
                "2222",
                "backup@nas.example.com",
                "sudo rm -rf /srv/backups/web1/old",
            ]
        )

    def test_rsync_addressing(self, endpoint):
        assert endpoint.rsync_destination("/srv/x") == "backup@nas.example.com:/srv/x"
        assert endpoint.rsync_shell_args() == ["-e", "ssh -p 2222"]

    def test_rsync_shell_without_opts(self):
        endpoint = SSHEndpoint("nas", username="backup")
        assert endpoint.rsync_shell_args() == ["-e", "ssh"]

    def test_failure_names_command(self, endpoint):
        with mock.patch("subprocess.run", return_value=completed(255, stderr="refused")):
            with pytest.raises(RemoteCommandError) as excinfo:
                endpoint.execute(MakeDir("/srv/backups/web1"))
        assert "backup@nas.example.com" in str(excinfo.value)
        assert "mkdir -p /srv/backups/web1" in str(excinfo.value)

    def test_defaults_to_invoking_user(self):
        with mock.patch("getpass.getuser", return_value="alice"):
            endpoint = SSHEndpoint("nas")
        assert endpoint.login == "alice@nas"


class TestResolveUsername:
    """Tests for resolve_username function."""

    def test_explicit(self):
        assert resolve_username("backup") == "backup"

    def test_getpass(self):
        with mock.patch("getpass.getuser", return_value="alice"):
            assert resolve_username() == "alice"

    def test_environment_fallback(self, monkeypatch):
        monkeypatch.setattr("ezbackup.endpoint.ssh._pwd_available", False)
        monkeypatch.setenv("USER", "bob")
        with mock.patch("getpass.getuser", side_effect=OSError("no user")):
            assert resolve_username() == "bob"

    def test_nothing_found(self, monkeypatch):
        monkeypatch.setattr("ezbackup.endpoint.ssh._pwd_available", False)
        monkeypatch.delenv("USER", raising=False)
        monkeypatch.delenv("USERNAME", raising=False)
        with mock.patch("getpass.getuser", side_effect=OSError("no user")):
            with pytest.raises(OSError):
                resolve_username()


class TestChooseEndpoint:
    """Tests for choose_endpoint function."""

    def test_remote_by_default(self):
        config = Config(backup_host="nas", backup_user="backup", ssh_opts=("-4",))
        endpoint = choose_endpoint(config, path="/backups/web1")
        assert isinstance(endpoint, SSHEndpoint)
        assert endpoint.login == "backup@nas"
        assert endpoint.config["ssh_opts"] == ["-4"]
        assert endpoint.config["path"] == "/backups/web1"

    def test_local_from_config(self):
        endpoint = choose_endpoint(Config(local=True))
        assert isinstance(endpoint, LocalEndpoint)
        assert endpoint.config["path"] == "/backups"

    def test_local_override(self):
        assert isinstance(choose_endpoint(Config(), local=True), LocalEndpoint)
        with mock.patch("getpass.getuser", return_value="alice"):
            endpoint = choose_endpoint(Config(local=True), local=False)
        assert isinstance(endpoint, SSHEndpoint)
