"""End-to-end tests of the Typer app with external processes mocked out."""

import os
from unittest.mock import patch

import pytest
import yaml
from typer.testing import CliRunner

from fig import __version__
from fig.cli import app
from fig.infra.errors import ExecutionError

runner = CliRunner()


@pytest.fixture(autouse=True)
def project_paths(fig_paths):
    """Scope config names to a temporary project directory."""
    with patch("fig.cli.context.FigPaths.for_cwd", return_value=fig_paths):
        yield fig_paths


@pytest.fixture
def mock_supervisor():
    """Patch the supervisor class in every command module that builds one."""
    with (
        patch("fig.cli.commands.psql.ProcessSupervisor") as psql_cls,
        patch("fig.cli.commands.port_forward.ProcessSupervisor") as forward_cls,
        patch("fig.cli.commands.k8s.ProcessSupervisor") as k8s_cls,
    ):
        instance = psql_cls.return_value
        forward_cls.return_value = instance
        k8s_cls.return_value = instance
        yield instance


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert __version__ in result.output


class TestConfigCommands:
    def test_path_for_named_config(self, project_paths):
        result = runner.invoke(app, ["--config", "staging", "config", "path"])

        assert result.exit_code == 0
        assert result.output.strip() == str(project_paths.project_dir / "staging.toml")

    def test_init_writes_stub(self, project_paths):
        result = runner.invoke(app, ["config", "init"])

        assert result.exit_code == 0
        written = (project_paths.project_dir / "default.toml").read_text()
        assert "myproject" in written
        assert "[port_forward]" in written

    def test_init_refuses_to_overwrite(self, project_paths):
        runner.invoke(app, ["config", "init"])

        result = runner.invoke(app, ["config", "init"])

        assert result.exit_code == 1
        assert "already exists" in result.output

    def test_init_from_existing_file(self, project_paths, config_file):
        result = runner.invoke(app, ["config", "init", "--from", str(config_file)])

        assert result.exit_code == 0
        target = project_paths.project_dir / "default.toml"
        assert target.read_text() == config_file.read_text()

    def test_init_from_malformed_file_installs_nothing(self, project_paths, tmp_path):
        broken = tmp_path / "broken.toml"
        broken.write_text("[postgres_local\n")

        result = runner.invoke(app, ["config", "init", "--from", str(broken)])

        assert result.exit_code == 1
        assert not (project_paths.project_dir / "default.toml").exists()

    def test_show_missing_config(self):
        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 1
        assert "fig config init" in result.output

    def test_show_prints_contents(self, config_file):
        result = runner.invoke(app, ["--config", str(config_file), "config", "show"])

        assert result.exit_code == 0
        assert "postgres_local" in result.output

    def test_list_marks_current_config(self, project_paths):
        runner.invoke(app, ["config", "init"])
        runner.invoke(app, ["--config", "staging", "config", "init"])

        result = runner.invoke(app, ["config", "list"])

        assert result.exit_code == 0
        assert "default" in result.output
        assert "staging" in result.output

    def test_list_without_configs(self):
        result = runner.invoke(app, ["config", "list"])

        assert result.exit_code == 0
        assert "No configs found" in result.output

    def test_edit_uses_editor_env(self, config_file, monkeypatch):
        monkeypatch.setenv("EDITOR", "nano")

        with patch("fig.cli.commands.config.click.edit") as mock_edit:
            result = runner.invoke(app, ["--config", str(config_file), "config", "edit"])

        assert result.exit_code == 0
        mock_edit.assert_called_once_with(filename=str(config_file), editor="nano")


class TestPsqlCommand:
    def test_unknown_environment(self, config_file, mock_supervisor):
        result = runner.invoke(app, ["--config", str(config_file), "psql", "staging"])

        assert result.exit_code == 1
        assert "Unrecognized environment" in result.output
        mock_supervisor.run.assert_not_called()

    def test_missing_config_file(self, mock_supervisor):
        result = runner.invoke(app, ["psql", "test"])

        assert result.exit_code == 1
        assert "fig config init" in result.output

    def test_missing_block(self, tmp_path, mock_supervisor):
        path = tmp_path / "only-local.toml"
        path.write_text('[postgres_local]\ntype = "direct"\nuser = "u"\ndatabase = "d"\n')

        result = runner.invoke(app, ["--config", str(path), "psql", "test"])

        assert result.exit_code == 1
        assert "postgres_test" in result.output

    def test_direct_forward_is_rejected(self, config_file, mock_supervisor):
        result = runner.invoke(app, ["--config", str(config_file), "psql", "local"])

        assert result.exit_code == 1
        assert "nothing to forward" in result.output
        mock_supervisor.run_forward.assert_not_called()

    @patch("fig.cli.commands.psql.allocate_ephemeral_port", return_value=50123)
    def test_shell_through_cloud_proxy(self, _mock_allocate, config_file, mock_supervisor):
        result = runner.invoke(
            app, ["--config", str(config_file), "psql", "PROD", "--shell"]
        )

        assert result.exit_code == 0
        primary, tunnel = mock_supervisor.run.call_args.args
        assert primary.program == "psql"
        assert "PGPASSWORD" not in primary.env
        assert tunnel.program == "cloud_sql_proxy"
        assert "Found random open port 50123" in result.output

    @patch("fig.cli.commands.psql.allocate_ephemeral_port", return_value=50123)
    def test_primary_failure_exit_code(self, _mock_allocate, config_file, mock_supervisor):
        mock_supervisor.run.side_effect = ExecutionError.from_returncode("psql", 2)

        result = runner.invoke(app, ["--config", str(config_file), "psql", "test", "-s"])

        assert result.exit_code == 1
        assert "psql exited with status 2" in result.output

    @patch("fig.cli.commands.psql.allocate_ephemeral_port", return_value=50123)
    def test_shell_wins_over_bouncer(self, _mock_allocate, config_file, mock_supervisor):
        result = runner.invoke(
            app, ["--config", str(config_file), "psql", "test", "--shell", "--bouncer"]
        )

        assert result.exit_code == 0
        primary, _tunnel = mock_supervisor.run.call_args.args
        assert primary.program == "psql"


class TestPortForwardCommand:
    def test_bad_specifier(self, mock_supervisor):
        result = runner.invoke(app, ["port-forward", "not-a-specifier"])

        assert result.exit_code == 1
        assert "Invalid forwarding specifier" in result.output
        mock_supervisor.run_forward.assert_not_called()

    def test_cluster_target_uses_config_defaults(self, config_file, mock_supervisor):
        result = runner.invoke(
            app, ["--config", str(config_file), "port-forward", "8080:svc/api:80"]
        )

        assert result.exit_code == 0
        (command,) = mock_supervisor.run_forward.call_args.args
        assert command.argv() == [
            "kubectl",
            "--context",
            "gke_dev",
            "--namespace",
            "tools",
            "port-forward",
            "svc/api",
            "8080:80",
        ]

    def test_flags_override_defaults_without_config(self, mock_supervisor):
        result = runner.invoke(
            app, ["port-forward", "8080:svc/api:80", "--context", "kind", "-n", "web"]
        )

        assert result.exit_code == 0
        (command,) = mock_supervisor.run_forward.call_args.args
        assert command.argv()[:5] == ["kubectl", "--context", "kind", "--namespace", "web"]

    def test_remote_host_uses_relay_script(self, mock_supervisor):
        result = runner.invoke(app, ["port-forward", "6379:redis.internal:6379"])

        assert result.exit_code == 0
        (command,) = mock_supervisor.run_forward.call_args.args
        script = command.temp_files[0]
        try:
            assert "redis.internal:6379" in script.read_text()
        finally:
            command.cleanup()


class TestK8sCommands:
    def test_logs_follow_from_config(self, config_file, mock_supervisor):
        result = runner.invoke(app, ["--config", str(config_file), "logs", "test"])

        assert result.exit_code == 0
        (command,) = mock_supervisor.run.call_args.args
        assert "deployment/api" in command.args
        assert "--follow" in command.args

    def test_logs_missing_block(self, config_file, mock_supervisor):
        result = runner.invoke(app, ["--config", str(config_file), "logs", "prod"])

        assert result.exit_code == 1
        assert "k8s_prod" in result.output

    def test_exec_uses_configured_command(self, config_file, mock_supervisor):
        result = runner.invoke(app, ["--config", str(config_file), "exec", "test"])

        assert result.exit_code == 0
        (command,) = mock_supervisor.run.call_args.args
        assert command.args[-3:] == ("--", "/bin/sh", "-l")

    def test_exec_explicit_command(self, config_file, mock_supervisor):
        result = runner.invoke(
            app, ["--config", str(config_file), "exec", "test", "--", "env"]
        )

        assert result.exit_code == 0
        (command,) = mock_supervisor.run.call_args.args
        assert command.args[-2:] == ("--", "env")


class TestAccessKeyCommand:
    def test_manifests_to_stdout(self):
        result = runner.invoke(
            app, ["access-key", "api-key", "-n", "backend", "--service-account", "worker"]
        )

        assert result.exit_code == 0
        docs = list(yaml.safe_load_all(result.output))
        assert [doc["kind"] for doc in docs] == ["Secret", "Role", "RoleBinding"]
        assert docs[0]["metadata"]["namespace"] == "backend"

    def test_invalid_name(self):
        result = runner.invoke(app, ["access-key", "Bad_Name"])

        assert result.exit_code == 1
        assert "Invalid resource name" in result.output

    def test_output_file_is_private(self, tmp_path):
        output = tmp_path / "key.yaml"

        result = runner.invoke(app, ["access-key", "api-key", "-o", str(output)])

        assert result.exit_code == 0
        assert output.stat().st_mode & 0o777 == 0o600
        assert yaml.safe_load(output.read_text())["kind"] == "Secret"

    def test_output_file_created_private_before_writing(self, tmp_path):
        output = tmp_path / "key.yaml"
        real_open = os.open
        opened = []

        def _recording_open(path, flags, mode=0o777, *args, **kwargs):
            if os.fspath(path) == str(output):
                opened.append((flags, mode))
            return real_open(path, flags, mode, *args, **kwargs)

        old_umask = os.umask(0)
        try:
            with patch("fig.cli.commands.access_key.os.open", side_effect=_recording_open):
                result = runner.invoke(app, ["access-key", "api-key", "-o", str(output)])
        finally:
            os.umask(old_umask)

        assert result.exit_code == 0
        ((flags, mode),) = opened
        assert flags & os.O_EXCL
        assert mode == 0o600
        assert output.stat().st_mode & 0o777 == 0o600

    def test_output_file_is_never_overwritten(self, tmp_path):
        output = tmp_path / "key.yaml"
        output.write_text("existing")

        result = runner.invoke(app, ["access-key", "api-key", "-o", str(output)])

        assert result.exit_code == 1
        assert "Refusing to overwrite" in result.output
        assert output.read_text() == "existing"


class TestDoctorCommand:
    def test_all_present(self):
        with patch("fig.cli.commands.doctor.check_dependency", return_value=True):
            result = runner.invoke(app, ["doctor"])

        assert result.exit_code == 0

    def test_missing_tool_fails(self):
        with patch(
            "fig.cli.commands.doctor.check_dependency",
            side_effect=lambda _supervisor, check: check.program != "gcloud",
        ):
            result = runner.invoke(app, ["check"])

        assert result.exit_code == 1
        assert "gcloud is not installed" in result.output
