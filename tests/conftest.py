from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from muxrun.tmux import Tmux, TmuxResult


@dataclass
class FakeWindow:
    panes: list[str]
    active: str


@dataclass
class FakeSession:
    windows: dict[str, FakeWindow] = field(default_factory=dict)
    current: str = "1"


@dataclass
class FakeServer:
    """Just enough of a tmux server for the commands muxrun issues.

    `session` is the client's session; the other sessions exist but are
    only reached through explicit targets.
    """

    running: bool = True
    session: str = "work"
    sessions: dict[str, FakeSession] = field(default_factory=dict)
    buffers: list[tuple[str, str]] = field(default_factory=list)
    next_pane: int = 0
    failures: dict[str, TmuxResult] = field(default_factory=dict)

    @property
    def windows(self) -> dict[str, FakeWindow]:
        return self.sessions.setdefault(self.session, FakeSession()).windows

    @property
    def current(self) -> str:
        return self.sessions.setdefault(self.session, FakeSession()).current

    @current.setter
    def current(self, index: str) -> None:
        self.sessions.setdefault(self.session, FakeSession()).current = index

    def new_pane(self) -> str:
        pane = f"%{self.next_pane}"
        self.next_pane += 1
        return pane

    def add_window(self, index: str, panes: int = 1, session: str | None = None) -> FakeWindow:
        s = self.sessions.setdefault(session or self.session, FakeSession())
        if not s.windows:
            s.current = index
        ids = [self.new_pane() for _ in range(panes)]
        w = FakeWindow(panes=ids, active=ids[0])
        s.windows[index] = w
        return w

    def find_pane(self, pane: str) -> FakeWindow | None:
        for s in self.sessions.values():
            for w in s.windows.values():
                if pane in w.panes:
                    return w
        return None

    def session_of(self, target: str | None) -> FakeSession | None:
        name = (target or "").partition(":")[0] or self.session
        return self.sessions.get(name)

    def find_window(self, target: str | None) -> FakeWindow | None:
        # "work:2", ":2", "work:2.0", "work" or None for the client's window.
        s = self.session_of(target)
        if s is None:
            return None
        index = (target or "").partition(":")[2].partition(".")[0] or s.current
        return s.windows.get(index)


def _opt(args: list[str], flag: str) -> str | None:
    if flag in args:
        return args[args.index(flag) + 1]
    return None


class FakeTmux(Tmux):
    def __init__(self, server: FakeServer | None = None) -> None:
        super().__init__()
        self.server = server or FakeServer()
        self.calls: list[tuple[str, ...]] = []

    def commands(self, name: str) -> list[tuple[str, ...]]:
        return [c for c in self.calls if c[0] == name]

    def subcommands(self) -> list[str]:
        return [c[0] for c in self.calls]

    def _spawn(self, argv: list[str]) -> TmuxResult:
        args = argv[1:]
        self.calls.append(tuple(args))
        if not self.server.running:
            return TmuxResult(1, "", "no server running on /tmp/tmux-1000/default\n")
        if args[0] in self.server.failures:
            return self.server.failures[args[0]]
        handler = getattr(self, "_" + args[0].replace("-", "_"), None)
        if handler is None:
            return TmuxResult(0, "", "")
        return handler(args[1:])

    def _ok(self, lines: list[str] | None = None) -> TmuxResult:
        return TmuxResult(0, "".join(line + "\n" for line in lines or []), "")

    def _missing(self, what: str) -> TmuxResult:
        return TmuxResult(1, "", f"can't find {what}\n")

    def _list_sessions(self, args: list[str]) -> TmuxResult:
        return self._ok(list(self.server.sessions))

    def _list_windows(self, args: list[str]) -> TmuxResult:
        s = self.server.session_of(_opt(args, "-t"))
        if s is None:
            return self._missing(f"session: {_opt(args, '-t')}")
        return self._ok(list(s.windows))

    def _display_message(self, args: list[str]) -> TmuxResult:
        s = self.server.session_of(_opt(args, "-t"))
        if s is None:
            return self._missing(f"session: {_opt(args, '-t')}")
        return self._ok([s.current])

    def _list_panes(self, args: list[str]) -> TmuxResult:
        target = _opt(args, "-t")
        if target is not None and target.startswith("%"):
            w = self.server.find_pane(target)
            if w is None:
                return self._missing(f"pane: {target}")
            return self._ok([f"{i}: [80x24] {p}" for i, p in enumerate(w.panes)])
        w = self.server.find_window(target)
        if w is None:
            return self._missing(f"window: {target}")
        if "-F" in args:
            return self._ok([str(i) for i in range(len(w.panes))])
        return self._ok([
            f"{i}: [80x24] [history 0/2000, 0 bytes] {p}" + (" (active)" if p == w.active else "")
            for i, p in enumerate(w.panes)
        ])

    def _split_window(self, args: list[str]) -> TmuxResult:
        w = self.server.find_window(_opt(args, "-t"))
        if w is None:
            return self._missing(f"window: {_opt(args, '-t')}")
        pane = self.server.new_pane()
        w.panes.append(pane)
        w.active = pane
        return self._ok()

    def _new_window(self, args: list[str]) -> TmuxResult:
        index = str(max((int(i) for i in self.server.windows), default=0) + 1)
        self.server.add_window(index)
        self.server.current = index
        return self._ok()

    def _select_pane(self, args: list[str]) -> TmuxResult:
        target = _opt(args, "-t") or ""
        w = self.server.find_pane(target)
        if w is None:
            return self._missing(f"pane: {target}")
        w.active = target
        return self._ok()

    def _send_keys(self, args: list[str]) -> TmuxResult:
        target = _opt(args, "-t")
        if target and target.startswith("%") and self.server.find_pane(target) is None:
            return self._missing(f"pane: {target}")
        return self._ok()

    def _kill_pane(self, args: list[str]) -> TmuxResult:
        target = _opt(args, "-t")
        if "-a" in args or target is None:
            return self._ok()
        w = self.server.find_pane(target)
        if w is None:
            return self._missing(f"pane: {target}")
        w.panes.remove(target)
        if w.active == target and w.panes:
            w.active = w.panes[0]
        return self._ok()

    def _list_buffers(self, args: list[str]) -> TmuxResult:
        return self._ok([f'{name}: {len(data)} bytes: "{data[:50]}"' for name, data in self.server.buffers])

    def _show_buffer(self, args: list[str]) -> TmuxResult:
        name = _opt(args, "-b")
        for buf_name, data in self.server.buffers:
            if name is None or buf_name == name:
                return TmuxResult(0, data, "")
        return TmuxResult(1, "", f"unknown buffer: {name}\n")

    def _set_buffer(self, args: list[str]) -> TmuxResult:
        name = _opt(args, "-b") or f"buffer{len(self.server.buffers)}"
        self.server.buffers.insert(0, (name, args[-1]))
        return self._ok()


class ScriptedChooser:
    def __init__(self, *answers: str | BaseException) -> None:
        self.answers = list(answers)
        self.prompts: list[tuple[str, list[str]]] = []

    def choose_one(self, prompt: str, candidates: list[str]) -> str:
        self.prompts.append((prompt, list(candidates)))
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer


@pytest.fixture
def server() -> FakeServer:
    s = FakeServer()
    s.add_window("1")
    s.add_window("2")
    s.current = "2"
    return s


@pytest.fixture
def tmux(server: FakeServer) -> FakeTmux:
    return FakeTmux(server)
