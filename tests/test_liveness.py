"""Tests for lock record liveness classification."""

import os
import socket
from collections.abc import Callable
from datetime import datetime, timedelta
from unittest import mock

from hypothesis import given
from hypothesis import strategies as st

from documentor.core import Liveness, classify, is_pid_running
from documentor.models import LockRecord, LockStatus

MakeRecord = Callable[..., LockRecord]

NOW = datetime(2026, 1, 4, 12, 0, 0)


def _record(**overrides) -> LockRecord:
    fields = {
        "owner_id": os.getpid(),
        "hostname": socket.gethostname(),
        "session_id": "s1",
        "target_path": "/p",
        "started_at": NOW,
        "last_heartbeat_at": NOW,
    }
    fields.update(overrides)
    return LockRecord(**fields)


class TestIsPidRunning:
    """Tests for is_pid_running."""

    def test_own_pid_is_running(self) -> None:
        assert is_pid_running(os.getpid()) is True

    def test_non_positive_pid_is_not_running(self) -> None:
        assert is_pid_running(0) is False
        assert is_pid_running(-5) is False

    def test_missing_process(self) -> None:
        with mock.patch("documentor.core.liveness.os.kill", side_effect=ProcessLookupError):
            assert is_pid_running(4242) is False

    def test_permission_denied_means_alive(self) -> None:
        with mock.patch("documentor.core.liveness.os.kill", side_effect=PermissionError):
            assert is_pid_running(1) is True


class TestClassify:
    """Tests for classify."""

    def test_absent(self) -> None:
        assert classify(None, NOW, 30) is Liveness.ABSENT

    def test_live_fresh_running_is_foreign_active(self) -> None:
        record = _record(last_heartbeat_at=NOW - timedelta(seconds=29))
        assert classify(record, NOW, 30) is Liveness.FOREIGN_ACTIVE

    def test_stale_heartbeat_is_reclaimable(self) -> None:
        record = _record(last_heartbeat_at=NOW - timedelta(seconds=30))
        assert classify(record, NOW, 30) is Liveness.RECLAIMABLE

    def test_dead_owner_is_reclaimable(self) -> None:
        with mock.patch("documentor.core.liveness.is_pid_running", return_value=False):
            assert classify(_record(), NOW, 30) is Liveness.RECLAIMABLE

    def test_other_host_skips_pid_check(self) -> None:
        record = _record(hostname="another-host", owner_id=4242)
        with mock.patch("documentor.core.liveness.is_pid_running", return_value=False) as pid_check:
            assert classify(record, NOW, 30) is Liveness.FOREIGN_ACTIVE
            stale = NOW + timedelta(seconds=60)
            assert classify(record, stale, 30) is Liveness.RECLAIMABLE
        pid_check.assert_not_called()

    def test_interrupted_and_failed_are_resumable(self) -> None:
        old = NOW - timedelta(days=30)
        for status in (LockStatus.INTERRUPTED, LockStatus.FAILED):
            record = _record(status=status, last_heartbeat_at=old)
            assert classify(record, NOW, 30) is Liveness.RESUMABLE

    def test_completed_is_terminal(self) -> None:
        record = _record(status=LockStatus.COMPLETED, checkpoint={"left": "over"})
        assert classify(record, NOW, 30) is Liveness.TERMINAL

    def test_only_takeovers_carry_resume(self) -> None:
        assert Liveness.RECLAIMABLE.carries_resume
        assert Liveness.RESUMABLE.carries_resume
        assert not Liveness.TERMINAL.carries_resume
        assert not Liveness.ABSENT.carries_resume
        assert not Liveness.FOREIGN_ACTIVE.carries_resume

    def test_live_run_blocks_for_two_minutes_of_heartbeats(self) -> None:
        """A run ticking every 5s is never stale at a 30s threshold."""
        started = NOW
        for elapsed in range(0, 121):
            last_tick = started + timedelta(seconds=(elapsed // 5) * 5)
            record = _record(started_at=started, last_heartbeat_at=last_tick)
            now = started + timedelta(seconds=elapsed)
            assert classify(record, now, 30) is Liveness.FOREIGN_ACTIVE


class TestClassifyProperties:
    """Property tests for classify."""

    @given(age=st.floats(min_value=-3600, max_value=86400), threshold=st.floats(1, 3600))
    def test_dead_owner_always_reclaimable(self, age: float, threshold: float) -> None:
        record = _record(last_heartbeat_at=NOW - timedelta(seconds=age))
        with mock.patch("documentor.core.liveness.is_pid_running", return_value=False):
            assert classify(record, NOW, threshold) is Liveness.RECLAIMABLE

    @given(
        age=st.floats(min_value=0, max_value=86400),
        progress=st.integers(0, 100),
        tasks=st.lists(st.text(max_size=8), max_size=5),
        checkpoint=st.none() | st.dictionaries(st.text(max_size=5), st.integers(), max_size=3),
    )
    def test_completed_never_resumable(
        self, age: float, progress: int, tasks: list[str], checkpoint: dict | None
    ) -> None:
        record = _record(
            status=LockStatus.COMPLETED,
            last_heartbeat_at=NOW - timedelta(seconds=age),
            progress_percent=progress,
            completed_tasks=tasks,
            checkpoint=checkpoint,
        )
        liveness = classify(record, NOW, 30)
        assert liveness is Liveness.TERMINAL
        assert not liveness.carries_resume

    @given(status=st.sampled_from([LockStatus.INTERRUPTED, LockStatus.FAILED]))
    def test_resumable_regardless_of_owner(self, status: LockStatus) -> None:
        with mock.patch("documentor.core.liveness.is_pid_running", return_value=True):
            assert classify(_record(status=status), NOW, 30) is Liveness.RESUMABLE
