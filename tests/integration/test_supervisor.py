"""
Integration tests for the process supervisor with real child processes.

Covers the initial start, coalescing of restart bursts, strict ordering of
reap-before-spawn, runaway protection and shutdown.
"""

import os
import sys
from unittest.mock import patch

import pytest

from relaunch.orchestration import ProcessSupervisor, RestartQueue, RuntimeState, SupervisorState
from relaunch.validation import RunawayRestartError, SpawnError, TerminationError

pytestmark = [
    pytest.mark.integration,
    pytest.mark.skipif(os.name == "nt", reason="POSIX signal semantics"),
]


@pytest.fixture
def supervisor_factory(make_config):
    created = []

    def _make(**overrides):
        state = RuntimeState()
        supervisor = ProcessSupervisor(make_config(**overrides), state=state)
        created.append(supervisor)
        return supervisor

    yield _make

    for supervisor in created:
        supervisor.request_shutdown()
        supervisor.join(timeout=5.0)


class TestSupervisorLifecycle:

    def test_initial_start_runs_command(self, supervisor_factory, test_utils):
        supervisor = supervisor_factory()
        assert supervisor.status is SupervisorState.IDLE

        supervisor.start()

        assert test_utils.wait_until(lambda: supervisor.current_process is not None)
        assert supervisor.status is SupervisorState.RUNNING
        assert supervisor.restart_count == 1
        assert test_utils.is_running(supervisor.current_process.pid)

    def test_start_twice_is_an_error(self, supervisor_factory):
        supervisor = supervisor_factory()
        supervisor.start()
        with pytest.raises(RuntimeError):
            supervisor.start()

    def test_restart_reaps_old_before_spawning_new(self, supervisor_factory, test_utils):
        supervisor = supervisor_factory()
        supervisor.start()
        assert test_utils.wait_until(lambda: supervisor.restart_count == 1)
        first = supervisor.current_process

        supervisor.request_restart()

        assert test_utils.wait_until(lambda: supervisor.restart_count == 2)
        second = supervisor.current_process
        assert second.pid != first.pid
        assert first.reaped
        assert first.reaped_at <= second.started_at
        assert not test_utils.is_running(first.pid)

    def test_burst_is_coalesced_into_one_restart(self, supervisor_factory, test_utils):
        supervisor = supervisor_factory(debounce=0.5)
        supervisor.start()
        assert test_utils.wait_until(lambda: supervisor.restart_count == 1)

        for _ in range(10):
            supervisor.request_restart()

        assert test_utils.wait_until(lambda: supervisor.restart_count == 2)
        # Let any stray token be consumed before checking nothing else happened
        assert not test_utils.wait_until(lambda: supervisor.restart_count > 2, timeout=1.5)
        assert supervisor.restart_queue.pending() == 0

    def test_at_most_one_child_alive(self, supervisor_factory, test_utils):
        supervisor = supervisor_factory()
        supervisor.start()
        for expected in range(2, 5):
            supervisor.request_restart()
            assert test_utils.wait_until(lambda: supervisor.restart_count == expected)

        alive = [p for p in supervisor.recent if test_utils.is_running(p.pid)]
        assert [p.pid for p in alive] == [supervisor.current_process.pid]

    def test_shutdown_stops_child(self, supervisor_factory, test_utils):
        supervisor = supervisor_factory()
        supervisor.start()
        assert test_utils.wait_until(lambda: supervisor.current_process is not None)
        child = supervisor.current_process

        supervisor.request_shutdown()
        supervisor.join(timeout=5.0)

        assert child.reaped
        assert not supervisor.is_alive()
        assert supervisor.current_process is None
        assert supervisor.status is SupervisorState.STOPPED

    def test_no_spawn_after_shutdown_during_debounce(self, supervisor_factory, test_utils):
        supervisor = supervisor_factory(debounce=5.0)
        supervisor.start()
        assert test_utils.wait_until(lambda: supervisor.status is SupervisorState.STARTING)

        supervisor.request_shutdown()
        supervisor.join(timeout=5.0)

        assert supervisor.current_process is None
        assert supervisor.restart_count == 0

    def test_child_exiting_on_its_own_waits_for_changes(self, supervisor_factory, test_utils):
        supervisor = supervisor_factory(command=[sys.executable, "-c", "pass"])
        supervisor.start()
        assert test_utils.wait_until(lambda: supervisor.restart_count == 1)
        child = supervisor.recent[-1]
        assert test_utils.wait_until(lambda: child.reaped_at is not None)

        # No automatic restart without a change
        assert not test_utils.wait_until(lambda: supervisor.restart_count > 1, timeout=1.0)

        supervisor.request_restart()
        assert test_utils.wait_until(lambda: supervisor.restart_count == 2)


class TestSupervisorFailures:

    def test_runaway_restarts_are_fatal(self, supervisor_factory, test_utils):
        supervisor = supervisor_factory(restart_limit=3, restart_window=30.0)
        supervisor.start()
        for expected in (2, 3):
            assert test_utils.wait_until(lambda: supervisor.restart_count == expected - 1)
            supervisor.request_restart()
        assert test_utils.wait_until(lambda: supervisor.restart_count == 3)
        last = supervisor.current_process

        supervisor.request_restart()

        assert test_utils.wait_until(supervisor.state.supervisor_failed.is_set)
        assert isinstance(supervisor.state.fatal_error, RunawayRestartError)
        assert supervisor.state.fatal_error.restarts == 3
        assert supervisor.restart_count == 3
        assert supervisor.status is SupervisorState.FAILED
        assert last.reaped
        assert supervisor.current_process is None

    def test_spawn_failure_is_fatal(self, supervisor_factory, temp_dir, test_utils):
        supervisor = supervisor_factory(command=[str(temp_dir / "missing-binary")])
        supervisor.start()

        assert test_utils.wait_until(supervisor.state.supervisor_failed.is_set)
        assert isinstance(supervisor.state.fatal_error, SpawnError)
        assert test_utils.wait_until(lambda: not supervisor.is_alive())

    def test_strict_termination_failure_is_fatal(self, supervisor_factory, test_utils):
        supervisor = supervisor_factory(strict_termination=True)
        supervisor.start()
        assert test_utils.wait_until(lambda: supervisor.restart_count == 1)
        first = supervisor.current_process

        error = TerminationError("process would not die", pid=first.pid)
        with patch.object(supervisor.process_manager, "terminate", side_effect=error):
            supervisor.request_restart()
            assert test_utils.wait_until(supervisor.state.supervisor_failed.is_set)

        assert supervisor.state.fatal_error is error
        assert supervisor.restart_count == 1
        # Clean up the child the mocked terminate left behind
        supervisor.process_manager.terminate(first)

    def test_lenient_termination_failure_keeps_going(self, supervisor_factory, test_utils):
        supervisor = supervisor_factory(strict_termination=False)
        supervisor.start()
        assert test_utils.wait_until(lambda: supervisor.restart_count == 1)
        first = supervisor.current_process

        error = TerminationError("process would not die", pid=first.pid)
        with patch.object(supervisor.process_manager, "terminate", side_effect=error):
            supervisor.request_restart()
            assert test_utils.wait_until(lambda: supervisor.restart_count == 2)

        assert not supervisor.state.supervisor_failed.is_set()
        supervisor.process_manager.terminate(first)


@pytest.mark.unit
def test_shared_queue_is_used(make_config):
    restart_queue = RestartQueue(maxsize=3)
    supervisor = ProcessSupervisor(make_config(), restart_queue=restart_queue)
    assert supervisor.request_restart()
    assert restart_queue.pending() == 1
