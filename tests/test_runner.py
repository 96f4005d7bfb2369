from __future__ import annotations

import pytest


def _mutating(tmux) -> list[tuple[str, ...]]:
    return [c for c in tmux.calls if c[0] in ("split-window", "send-keys", "select-pane", "kill-pane")]


def test_run_command_creates_runner_in_order(tmux) -> None:
    from muxrun.runner import RunnerManager

    rm = RunnerManager(tmux)
    pane = rm.run_command("2", "echo hi", "/srv/app")

    assert pane == "%2"
    assert rm.panes == {"2": "%2"}
    assert _mutating(tmux) == [
        ("split-window", "-v", "-p", "20", "-t", ":2"),
        ("send-keys", "-t", "%2", "cd /srv/app", "C-m"),
        ("send-keys", "-t", "%2", "echo hi", "C-m"),
        ("select-pane", "-t", "%1"),
    ]
    assert rm.last_command == "echo hi"


def test_run_command_restores_focus(tmux, server) -> None:
    from muxrun.runner import RunnerManager

    RunnerManager(tmux).run_command("2", "ls", "/tmp")
    assert server.windows["2"].active == "%1"


def test_ensure_runner_is_idempotent(tmux) -> None:
    from muxrun.runner import RunnerManager

    rm = RunnerManager(tmux)
    first = rm.ensure_runner("2", "/tmp")
    second = rm.ensure_runner("2", "/tmp")

    assert first == second
    assert len(tmux.commands("split-window")) == 1
    assert len(tmux.commands("send-keys")) == 1


def test_horizontal_split_and_height() -> None:
    from muxrun.runner import RunnerOptions

    assert RunnerOptions(orientation="horizontal", height=35).split_args() == ["split-window", "-h", "-p", "35"]


def test_use_nearest_pane_reuses_existing_pane(tmux, server) -> None:
    from muxrun.runner import RunnerManager, RunnerOptions

    server.windows["2"].panes.append("%7")
    rm = RunnerManager(tmux, options=RunnerOptions(use_nearest_pane=True))
    pane = rm.ensure_runner("2", "/tmp")

    assert pane == "%7"
    assert tmux.commands("split-window") == []


def test_use_nearest_pane_splits_when_alone(tmux) -> None:
    from muxrun.runner import RunnerManager, RunnerOptions

    rm = RunnerManager(tmux, options=RunnerOptions(use_nearest_pane=True))
    rm.ensure_runner("2", "/tmp")

    assert len(tmux.commands("split-window")) == 1


def test_runner_in_remote_directory_logs_in_first(tmux) -> None:
    from muxrun.runner import RunnerManager

    RunnerManager(tmux).ensure_runner("2", "/ssh:deploy@build.example.com:/srv/app")

    assert tmux.commands("send-keys") == [
        ("send-keys", "-t", "%2", "ssh -l deploy build.example.com", "C-m"),
        ("send-keys", "-t", "%2", "cd /srv/app", "C-m"),
    ]


def test_gc_drops_closed_windows(tmux) -> None:
    from muxrun.runner import RunnerManager

    rm = RunnerManager(tmux, panes={"2": "%1", "9": "%5", "12": "%8"})
    rm.gc()

    assert rm.panes == {"2": "%1"}


def test_is_alive_rechecks_pane(tmux, server) -> None:
    from muxrun.runner import RunnerManager

    rm = RunnerManager(tmux)
    rm.ensure_runner("2", "/tmp")
    assert rm.is_alive("2") is True

    # Pane killed behind our back: the entry is still there but not live.
    server.windows["2"].panes.remove("%2")
    assert rm.is_alive("2") is False


def test_dead_runner_is_replaced(tmux, server) -> None:
    from muxrun.runner import RunnerManager

    rm = RunnerManager(tmux)
    rm.ensure_runner("2", "/tmp")
    server.windows["2"].panes.remove("%2")
    server.windows["2"].active = "%1"

    assert rm.ensure_runner("2", "/tmp") == "%3"
    assert rm.panes == {"2": "%3"}
    assert len(tmux.commands("split-window")) == 2


def test_is_alive_false_after_close(tmux, server) -> None:
    from muxrun.runner import RunnerManager

    rm = RunnerManager(tmux)
    rm.ensure_runner("2", "/tmp")
    rm.close("2")

    assert rm.is_alive("2") is False
    assert "%2" not in server.windows["2"].panes
    assert ("kill-pane", "-t", "%2") in tmux.calls


def test_close_without_runner_is_noop(tmux) -> None:
    from muxrun.runner import RunnerManager

    rm = RunnerManager(tmux)
    rm.close("2")
    assert tmux.commands("kill-pane") == []


def test_failure_leaves_map_unmodified(tmux, server) -> None:
    from muxrun.errors import TmuxCommandError
    from muxrun.runner import RunnerManager
    from muxrun.tmux import TmuxResult

    server.failures["send-keys"] = TmuxResult(1, "", "lost server\n")
    rm = RunnerManager(tmux)
    with pytest.raises(TmuxCommandError):
        rm.ensure_runner("2", "/tmp")
    assert rm.panes == {}


def test_split_failure_propagates(tmux, server) -> None:
    from muxrun.errors import TmuxCommandError
    from muxrun.runner import RunnerManager
    from muxrun.tmux import TmuxResult

    server.failures["split-window"] = TmuxResult(1, "", "no space for new pane\n")
    rm = RunnerManager(tmux)
    with pytest.raises(TmuxCommandError, match="no space for new pane"):
        rm.run_command("2", "make", "/tmp")
    assert rm.panes == {}
    assert rm.last_command is None


@pytest.mark.parametrize(
    ("method", "expected"),
    [
        ("inspect", [("select-pane", "-t", "%2"), ("copy-mode", "-t", "%2")]),
        ("interrupt", [("send-keys", "-t", "%2", "C-c")]),
        ("clear_history", [("clear-history", "-t", "%2")]),
        ("zoom", [("resize-pane", "-Z", "-t", "%2")]),
    ],
)
def test_runner_operations(tmux, method: str, expected: list[tuple[str, ...]]) -> None:
    from muxrun.runner import RunnerManager

    rm = RunnerManager(tmux)
    rm.ensure_runner("2", "/tmp")
    tmux.calls.clear()

    getattr(rm, method)("2")
    issued = [c for c in tmux.calls if c[0] not in ("list-windows", "list-panes")]
    assert issued == expected


@pytest.mark.parametrize("method", ["inspect", "interrupt", "clear_history", "zoom"])
def test_runner_operations_need_a_runner(tmux, method: str) -> None:
    from muxrun.errors import NoRunnerPane
    from muxrun.runner import RunnerManager

    rm = RunnerManager(tmux)
    with pytest.raises(NoRunnerPane):
        getattr(rm, method)("2")
    assert tmux.commands("split-window") == []


def test_run_last_command(tmux) -> None:
    from muxrun.errors import MuxrunError
    from muxrun.runner import RunnerManager

    rm = RunnerManager(tmux)
    with pytest.raises(MuxrunError, match="No command"):
        rm.run_last_command("2", "/tmp")

    rm.run_command("2", "pytest -x", "/tmp")
    tmux.calls.clear()
    rm.run_last_command("2", "/tmp")
    assert ("send-keys", "-t", "%2", "pytest -x", "C-m") in tmux.calls
    assert tmux.commands("split-window") == []


def test_current_window_scoped_by_session(tmux) -> None:
    from muxrun.runner import RunnerManager

    rm = RunnerManager(tmux, session="work")
    assert rm.current_window() == "2"
    assert tmux.calls[-1] == ("display-message", "-p", "-t", "work", "#I")


def test_runner_is_split_in_its_own_session(tmux, server) -> None:
    from muxrun.runner import RunnerManager

    # "ops" is not the client's session; its window 0 holds %2.
    server.add_window("0", session="ops")
    rm = RunnerManager(tmux, session="ops")
    pane = rm.run_command(rm.current_window(), "uptime", "/tmp")

    assert pane == "%3"
    assert rm.panes == {"0": "%3"}
    assert server.sessions["ops"].windows["0"].panes == ["%2", "%3"]
    assert all("%3" not in w.panes for w in server.windows.values())
    assert ("split-window", "-v", "-p", "20", "-t", "ops:0") in tmux.calls
    assert ("list-panes", "-t", "ops:0") in tmux.calls
    assert tmux.calls[-1] == ("select-pane", "-t", "%2")
