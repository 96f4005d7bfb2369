from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from .config import MuxrunConfig
from .errors import SelectionError, UserCancelled
from .formats import parse_buffers
from .remote import directory_commands
from .runner import RunnerManager
from .selection import Chooser, Selection, SelectionResolver
from .tmux import Tmux
from .tmux_target import TmuxTarget

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def tmux_command(fn: F) -> F:
    """Probe the tmux server first; a cancelled prompt ends the command quietly."""

    @functools.wraps(fn)
    def wrapper(self: "Muxrun", *args: Any, **kwargs: Any) -> Any:
        self.tmux.ensure_running()
        try:
            return fn(self, *args, **kwargs)
        except UserCancelled:
            logger.debug("%s cancelled", fn.__name__)
            return None

    return wrapper  # type: ignore[return-value]


class Muxrun:
    """The commands an editor binds to keys.

    One instance lives as long as the host session; it owns the target
    selection and the runner panes.
    """

    def __init__(
        self,
        tmux: Tmux,
        config: MuxrunConfig,
        chooser: Chooser,
        *,
        selection: Selection | None = None,
        runner: RunnerManager | None = None,
    ) -> None:
        self.tmux = tmux
        self.config = config
        self.chooser = chooser
        self.selection = selection or Selection()
        self.runners: dict[str | None, RunnerManager] = {}
        if runner is not None:
            self.runners[runner.session] = runner
        self.resolver = SelectionResolver(tmux, self.selection, chooser)

    @property
    def runner(self) -> RunnerManager:
        """Runner panes of the selected session (the client's when none is selected).

        Each session gets its own map, so window indexes never collide
        between sessions.
        """

        session = self.selection.session
        if session not in self.runners:
            self.runners[session] = RunnerManager(self.tmux, options=self.config.runner_options(), session=session)
        return self.runners[session]

    # Sending to the selected pane.

    @tmux_command
    def send_command(self, text: str, *, force: bool = False) -> TmuxTarget:
        target = self.resolver.resolve(force=force)
        self.tmux.send_keys(target.format(), text)
        return target

    @tmux_command
    def send_region(self, text: str, *, force: bool = False) -> TmuxTarget:
        target = self.resolver.resolve(force=force)
        # Blank lines are sent too; a REPL uses them to close a block.
        for line in text.splitlines():
            self.tmux.send_keys(target.format(), line)
        return target

    @tmux_command
    def choose_target(self) -> TmuxTarget:
        return self.resolver.resolve(force=True)

    @tmux_command
    def set_target(self, target: TmuxTarget) -> TmuxTarget:
        self.selection.set_target(target)
        return self.resolver.resolve()

    # Paste buffers.

    @tmux_command
    def yank_from_buffers(self) -> str:
        fmt = self.config.buffers()
        entries = parse_buffers(self.tmux.invoke_lines("list-buffers"), fmt)
        if not entries:
            raise SelectionError("No tmux buffers")

        candidates = {f"{e.name}: {e.sample}": e.name for e in entries}
        if len(candidates) == 1:
            name = next(iter(candidates.values()))
        else:
            choice = self.chooser.choose_one("Buffer: ", list(candidates))
            if choice not in candidates:
                raise SelectionError(f"{choice!r} is not a tmux buffer")
            name = candidates[choice]
        return self.tmux.invoke("show-buffer", "-b", name)

    @tmux_command
    def show_buffer(self, name: str | None = None) -> str:
        args = ["show-buffer"]
        if name is not None:
            args += ["-b", name]
        return self.tmux.invoke(*args)

    @tmux_command
    def copy_to_buffer(self, data: str, *, index: str | None = None) -> None:
        args = ["set-buffer"]
        if index is not None:
            args += ["-b", index]
        if data.startswith("-"):
            args.append("--")
        self.tmux.invoke(*args, data)

    # Runner pane.

    def _window(self) -> str:
        return self.runner.current_window()

    @tmux_command
    def run_command(self, text: str, directory: str) -> str:
        return self.runner.run_command(self._window(), text, directory)

    @tmux_command
    def run_last_command(self, directory: str) -> str:
        return self.runner.run_last_command(self._window(), directory)

    @tmux_command
    def inspect_runner(self) -> None:
        self.runner.inspect(self._window())

    @tmux_command
    def interrupt_runner(self) -> None:
        self.runner.interrupt(self._window())

    @tmux_command
    def clear_runner_history(self) -> None:
        self.runner.clear_history(self._window())

    @tmux_command
    def zoom_runner(self) -> None:
        self.runner.zoom(self._window())

    @tmux_command
    def close_runner(self) -> None:
        self.runner.close(self._window())

    @tmux_command
    def runner_alive(self) -> bool:
        return self.runner.is_alive(self._window())

    # Windows and panes.

    @tmux_command
    def close_panes(self, target: TmuxTarget | None = None) -> None:
        args = ["kill-pane", "-a"]
        if target is not None:
            args += ["-t", target.format()]
        self.tmux.invoke(*args)

    def _change_directory(self, pane: str | None, directory: str | None) -> None:
        if directory is None:
            return
        # Without a pane id the keys go to the active pane, which is the new one.
        for line in directory_commands(directory):
            self.tmux.send_keys(pane, line)

    @tmux_command
    def new_window(self, directory: str | None = None, *, after: bool = True) -> None:
        args = ["new-window"]
        if after:
            args.append("-a")
        self.tmux.invoke(*args)
        self._change_directory(self.runner.active_pane(), directory)

    @tmux_command
    def split_window(self, directory: str | None = None, *, horizontal: bool | None = None) -> None:
        if horizontal is None:
            horizontal = self.config.orientation == "horizontal"
        self.tmux.invoke("split-window", "-h" if horizontal else "-v")
        self._change_directory(self.runner.active_pane(), directory)

    @tmux_command
    def clone_window(self, directory: str, replay: Callable[[], str | None], *, split: bool = False) -> None:
        """Open a new window (or split) at `directory` and send it `replay()`.

        `replay` is supplied by the host and returns the shell command that
        brings up an editor showing the current layout.
        """

        if split:
            self.tmux.invoke("split-window", "-h" if self.config.orientation == "horizontal" else "-v")
        else:
            self.tmux.invoke("new-window", "-a")
        pane = self.runner.active_pane()
        self._change_directory(pane, directory)
        command = replay()
        if command:
            self.tmux.send_keys(pane, command)

    @tmux_command
    def goto_window(self, target: TmuxTarget) -> None:
        if target.session:
            self.tmux.invoke("switch-client", "-t", target.session)
        self.tmux.invoke("select-window", "-t", target.window_target())
        if target.pane:
            self.tmux.invoke("select-pane", "-t", target.format())
