"""Shared test fixtures for documentor tests."""

import os
import socket
import uuid
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

import pytest
from typer.testing import CliRunner

from documentor.config import LockConfig, LockLocation
from documentor.core import LockStore, SessionCoordinator
from documentor.models import LockRecord, LockStatus


@pytest.fixture
def runner() -> CliRunner:
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    """Create temporary documentor state directory."""
    d = tmp_path / "state"
    d.mkdir()
    return d


@pytest.fixture
def target(tmp_path: Path) -> Path:
    """Create temporary target directory being documented."""
    d = tmp_path / "project"
    d.mkdir()
    return d


@pytest.fixture
def store(state_dir: Path) -> LockStore:
    """Lock store keeping records inside the target."""
    return LockStore(LockLocation.TARGET, state_dir)


@pytest.fixture
def fast_config() -> LockConfig:
    """Lock config with a fast heartbeat and a generous staleness window."""
    return LockConfig(heartbeat_interval=0.02, stale_threshold=10.0, finalize_retry_delay=0)


@pytest.fixture
def coordinator(store: LockStore, fast_config: LockConfig) -> SessionCoordinator:
    """Coordinator using the target-local store and fast config."""
    return SessionCoordinator(store, fast_config)


def build_record(target: Path | str = "/p", **overrides: Any) -> LockRecord:
    """Build a running record owned by this process, with overrides."""
    now = datetime.now()
    fields: dict[str, Any] = {
        "owner_id": os.getpid(),
        "hostname": socket.gethostname(),
        "session_id": uuid.uuid4().hex,
        "target_path": str(target),
        "started_at": now,
        "last_heartbeat_at": now,
        "status": LockStatus.RUNNING,
    }
    fields.update(overrides)
    return LockRecord(**fields)


@pytest.fixture
def make_record() -> Callable[..., LockRecord]:
    """Factory for running records owned by this process."""
    return build_record
