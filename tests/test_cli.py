"""
Tests for the command-line entry point.
"""

import logging
import signal

import pytest
import yaml

from afs_restore import cli
from afs_restore.cli import EXIT_CONFIG_ERROR, EXIT_INTERRUPTED, EXIT_OK, build_parser, main, resolve_settings
from afs_restore.core.workflow import RestoreWorkflow
from afs_restore.mock_backend import InMemoryBackupBackend
from afs_restore.models.entities import BackendType
from afs_restore.models.results import StopReason


@pytest.fixture(autouse=True)
def restore_logging():
    """main() reconfigures the root logger; put it back afterwards."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


class TestResolveSettings:
    def test_overrides(self):
        args = build_parser().parse_args([
            "--backend", "in_memory", "--vault-name", "V1", "--resource-group", "rg-backup",
            "--poll-interval", "2.5", "--max-wait", "none", "--log-level", "DEBUG",
        ])

        settings = resolve_settings(args)

        assert settings.backend == BackendType.IN_MEMORY
        assert settings.azure.vault_name == "V1"
        assert settings.azure.resource_group == "rg-backup"
        assert settings.polling.poll_interval_seconds == 2.5
        assert settings.polling.max_wait_seconds is None
        assert settings.logging.log_level == "DEBUG"

    def test_config_file_then_flags(self, tmp_path):
        path = tmp_path / "restore.yaml"
        path.write_text(yaml.safe_dump({"azure": {"vault_name": "from-file"}, "polling": {"max_polls": 5}}))
        args = build_parser().parse_args(["--config", str(path), "--vault-name", "from-flag"])

        settings = resolve_settings(args)

        assert settings.azure.vault_name == "from-flag"
        assert settings.polling.max_polls == 5

    @pytest.mark.parametrize("value", ["0", "-5", "soon"])
    def test_invalid_max_wait(self, value):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--max-wait", value])


class TestMain:
    def test_print_config(self, capsys):
        assert main(["--backend", "in_memory", "--print-config"]) == EXIT_OK

        printed = yaml.safe_load(capsys.readouterr().out)
        assert printed["backend"] == "in_memory"

    def test_missing_config_file(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "missing.yaml")]) == EXIT_CONFIG_ERROR
        assert "Settings file not found" in capsys.readouterr().out

    def test_invalid_config_value(self, tmp_path, capsys):
        path = tmp_path / "restore.yaml"
        path.write_text(yaml.safe_dump({"polling": {"poll_interval_seconds": -1}}))

        assert main(["--config", str(path)]) == EXIT_CONFIG_ERROR
        assert "Invalid configuration" in capsys.readouterr().out

    def test_missing_answers_file(self, tmp_path, capsys):
        assert main(["--backend", "in_memory", "--answers", str(tmp_path / "none.txt")]) == EXIT_CONFIG_ERROR
        assert "Cannot read answers file" in capsys.readouterr().out

    def test_scripted_in_memory_run(self, tmp_path, capsys):
        answers = tmp_path / "answers.txt"
        answers.write_text("\n".join([
            "# vault, share, recovery point",
            "1", "1", "1",
            "# full share, original location, overwrite",
            "1", "1", "1",
            "y",
            "n",
        ]) + "\n")

        exit_code = main([
            "--backend", "in_memory", "--answers", str(answers),
            "--poll-interval", "0.01", "--max-wait", "30",
        ])

        assert exit_code == EXIT_OK
        out = capsys.readouterr().out
        assert "Start the restore? (y/n): y" in out
        assert "[SUCCESS] Restore completed" in out


def send_interrupt():
    """Invoke the SIGINT handler main() installed, as the interpreter would on Ctrl+C."""
    handler = signal.getsignal(signal.SIGINT)
    handler(signal.SIGINT, None)


class TestInterrupt:
    @pytest.fixture
    def answers(self, tmp_path):
        path = tmp_path / "answers.txt"
        path.write_text("\n".join(["1", "1", "1", "1", "1", "1", "y", "n"]) + "\n")
        return str(path)

    @pytest.fixture
    def results(self, monkeypatch):
        """Collects what each workflow run returned."""
        collected = []

        class RecordingWorkflow(RestoreWorkflow):
            def run(self):
                result = super().run()
                collected.append(result)
                return result

        monkeypatch.setattr(cli, "RestoreWorkflow", RecordingWorkflow)
        return collected

    def test_interrupt_while_monitoring_stops_watching(self, monkeypatch, answers, results, capsys):
        get_job = InMemoryBackupBackend.get_job

        def interrupted_get_job(self, vault, job_id):
            if self.poll_count == 0:
                send_interrupt()
            return get_job(self, vault, job_id)

        monkeypatch.setattr(InMemoryBackupBackend, "get_job", interrupted_get_job)
        previous = signal.getsignal(signal.SIGINT)

        exit_code = main(["--backend", "in_memory", "--answers", answers, "--poll-interval", "0.01"])

        assert exit_code == EXIT_OK
        assert results[0].stop_reason == StopReason.CANCELLED
        assert results[0].polls == 1
        assert "Stopped watching the job" in capsys.readouterr().out
        assert signal.getsignal(signal.SIGINT) is previous

    def test_interrupt_outside_monitoring_exits(self, monkeypatch, answers, results, capsys):
        def interrupted_list_vaults(self, resource_group=None):
            send_interrupt()
            return []

        monkeypatch.setattr(InMemoryBackupBackend, "list_vaults", interrupted_list_vaults)
        previous = signal.getsignal(signal.SIGINT)

        exit_code = main(["--backend", "in_memory", "--answers", answers])

        assert exit_code == EXIT_INTERRUPTED
        assert results == []
        assert "Operation cancelled by user." in capsys.readouterr().out
        assert signal.getsignal(signal.SIGINT) is previous
