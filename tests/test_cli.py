"""CLI integration tests for documentor."""

import json
from collections.abc import Callable
from pathlib import Path

from typer.testing import CliRunner

from documentor.cli import app
from documentor.config import LockLocation
from documentor.core import LockStore
from documentor.models import LockRecord, LockStatus

MakeRecord = Callable[..., LockRecord]


def _invoke(runner: CliRunner, state_dir: Path, *args: str):
    return runner.invoke(app, ["--no-color", "--state-dir", str(state_dir), *args])


class TestVersionCommand:
    """Tests for --version flag."""

    def test_version_shows_version(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert "documentor" in result.stdout
        assert "0.1.0" in result.stdout

    def test_version_short_flag(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["-V"])
        assert result.exit_code == 0
        assert "documentor" in result.stdout


class TestHelpCommand:
    """Tests for --help flag."""

    def test_help_shows_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("init", "status", "unlock", "locks"):
            assert command in result.stdout

    def test_no_args_shows_help(self, runner: CliRunner) -> None:
        """Running with no args should show help (exit code 2 for no_args_is_help)."""
        result = runner.invoke(app, [])
        assert result.exit_code == 2
        assert "Usage:" in result.output


class TestInitCommand:
    """Tests for init command."""

    def test_creates_config(self, runner: CliRunner, tmp_path: Path) -> None:
        state_dir = tmp_path / "fresh-state"
        result = _invoke(runner, state_dir, "init")
        assert result.exit_code == 0
        assert (state_dir / "config.toml").exists()
        assert "Created config template" in result.output

    def test_existing_config_left_alone(self, runner: CliRunner, state_dir: Path) -> None:
        (state_dir / "config.toml").write_text("# mine\n")
        result = _invoke(runner, state_dir, "init")
        assert result.exit_code == 0
        assert "already exists" in result.output
        assert (state_dir / "config.toml").read_text() == "# mine\n"


class TestStatusCommand:
    """Tests for status command."""

    def test_no_record(self, runner: CliRunner, state_dir: Path, target: Path) -> None:
        result = _invoke(runner, state_dir, "status", str(target))
        assert result.exit_code == 1
        assert "No lock record" in result.output

    def test_shows_running_record(
        self,
        runner: CliRunner,
        state_dir: Path,
        target: Path,
        store: LockStore,
        make_record: MakeRecord,
    ) -> None:
        store.write(target, make_record(target, current_phase="writing", progress_percent=40))
        result = _invoke(runner, state_dir, "status", str(target))
        assert result.exit_code == 0
        assert "running" in result.output
        assert "writing" in result.output
        assert "40%" in result.output
        assert "in progress" in result.output

    def test_json_output(
        self,
        runner: CliRunner,
        state_dir: Path,
        target: Path,
        store: LockStore,
        make_record: MakeRecord,
    ) -> None:
        store.write(target, make_record(target, status=LockStatus.INTERRUPTED, error="SIGTERM"))
        result = _invoke(runner, state_dir, "--json", "status", str(target))
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["liveness"] == "resumable"
        assert data["record"]["status"] == "interrupted"
        assert data["record"]["error"] == "SIGTERM"

    def test_invalid_config(self, runner: CliRunner, state_dir: Path, target: Path) -> None:
        (state_dir / "config.toml").write_text("[lock]\nheartbeat_interval = -1\n")
        result = _invoke(runner, state_dir, "status", str(target))
        assert result.exit_code == 3
        assert "Invalid config" in result.output


class TestUnlockCommand:
    """Tests for unlock command."""

    def test_refuses_active_lock(
        self,
        runner: CliRunner,
        state_dir: Path,
        target: Path,
        store: LockStore,
        make_record: MakeRecord,
    ) -> None:
        store.write(target, make_record(target))
        result = _invoke(runner, state_dir, "unlock", str(target))
        assert result.exit_code == 1
        assert "--force" in result.output
        assert store.read(target) is not None

    def test_force_removes_active_lock(
        self,
        runner: CliRunner,
        state_dir: Path,
        target: Path,
        store: LockStore,
        make_record: MakeRecord,
    ) -> None:
        store.write(target, make_record(target))
        result = _invoke(runner, state_dir, "unlock", "--force", str(target))
        assert result.exit_code == 0
        assert "Unlocked" in result.output
        assert store.read(target) is None

    def test_clears_resume_state(
        self,
        runner: CliRunner,
        state_dir: Path,
        target: Path,
        store: LockStore,
        make_record: MakeRecord,
    ) -> None:
        store.write(target, make_record(target, status=LockStatus.FAILED, checkpoint={"c": 1}))
        result = _invoke(runner, state_dir, "unlock", str(target))
        assert result.exit_code == 0
        assert store.read(target) is None

    def test_nothing_to_unlock(self, runner: CliRunner, state_dir: Path, target: Path) -> None:
        result = _invoke(runner, state_dir, "unlock", str(target))
        assert result.exit_code == 1
        assert "No lock record" in result.output


class TestLocksCommand:
    """Tests for locks command."""

    def test_lists_state_dir_records(
        self,
        runner: CliRunner,
        state_dir: Path,
        tmp_path: Path,
        make_record: MakeRecord,
    ) -> None:
        (state_dir / "config.toml").write_text('[lock]\nlocation = "state_dir"\n')
        store = LockStore(LockLocation.STATE_DIR, state_dir)
        first, second = tmp_path / "alpha", tmp_path / "beta"
        store.write(first, make_record(first, current_phase="writing"))
        store.write(second, make_record(second, status=LockStatus.COMPLETED))

        result = _invoke(runner, state_dir, "--json", "locks")

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        by_target = {entry["record"]["target_path"]: entry for entry in data}
        assert by_target[str(first)]["liveness"] == "foreign_active"
        assert by_target[str(second)]["liveness"] == "terminal"

    def test_target_location_has_nothing_to_list(
        self, runner: CliRunner, state_dir: Path
    ) -> None:
        result = _invoke(runner, state_dir, "locks")
        assert result.exit_code == 0
        assert "No lock records found" in result.output
