from __future__ import annotations

import logging
from dataclasses import dataclass, field

from .errors import MuxrunError, NoRunnerPane
from .formats import WINDOW_INDEX_FORMAT, active_id, nearest_inactive_id
from .remote import directory_commands
from .tmux import Tmux

logger = logging.getLogger(__name__)

ORIENTATIONS = ("vertical", "horizontal")


@dataclass(frozen=True, slots=True)
class RunnerOptions:
    orientation: str = "vertical"  # vertical|horizontal
    height: int = 20  # percent of the split pane
    use_nearest_pane: bool = False

    def split_args(self) -> list[str]:
        flag = "-h" if self.orientation == "horizontal" else "-v"
        return ["split-window", flag, "-p", str(self.height)]


@dataclass
class RunnerManager:
    """Tracks the runner pane of each window.

    `panes` maps a window index of `session` to the id of its runner pane.
    Entries for windows that no longer exist are dropped before every read,
    and a present entry is only trusted after probing its pane. Every pane
    lookup and split is aimed at `session:window`, so the runner lands in
    the window it is recorded under.
    """

    tmux: Tmux
    options: RunnerOptions = field(default_factory=RunnerOptions)
    session: str | None = None
    panes: dict[str, str] = field(default_factory=dict)
    last_command: str | None = None

    def live_windows(self) -> list[str]:
        args = ["list-windows", "-F", WINDOW_INDEX_FORMAT]
        if self.session:
            args += ["-t", self.session]
        return self.tmux.invoke_lines(*args)

    def current_window(self) -> str:
        args = ["display-message", "-p"]
        if self.session:
            args += ["-t", self.session]
        return self.tmux.invoke(*args, WINDOW_INDEX_FORMAT).strip()

    def window_target(self, window: str) -> str:
        return f"{self.session or ''}:{window}"

    def _list_panes(self, window: str | None) -> list[str]:
        if window is None:
            return self.tmux.invoke_lines("list-panes")
        return self.tmux.invoke_lines("list-panes", "-t", self.window_target(window))

    def active_pane(self, window: str | None = None) -> str | None:
        """Active pane of `window`, or of the client's window when None."""

        return active_id(self._list_panes(window))

    def nearest_pane(self, window: str | None = None) -> str | None:
        return nearest_inactive_id(self._list_panes(window))

    def gc(self) -> None:
        live = set(self.live_windows())
        for window in [w for w in self.panes if w not in live]:
            logger.debug("dropping runner of closed window %s", window)
            del self.panes[window]

    def pane_alive(self, pane: str) -> bool:
        return self.tmux.run("list-panes", "-t", pane).ok

    def runner_pane(self, window: str) -> str | None:
        """The runner pane of `window` if it is still alive."""

        self.gc()
        pane = self.panes.get(window)
        if pane is None or not self.pane_alive(pane):
            return None
        return pane

    def is_alive(self, window: str) -> bool:
        return self.runner_pane(window) is not None

    def require_runner(self, window: str) -> str:
        pane = self.runner_pane(window)
        if pane is None:
            raise NoRunnerPane()
        return pane

    def _create_runner(self, window: str) -> str:
        if self.options.use_nearest_pane and (pane := self.nearest_pane(window)):
            logger.debug("reusing nearest pane %s as runner", pane)
            return pane

        self.tmux.invoke(*self.options.split_args(), "-t", self.window_target(window))
        # The freshly split pane becomes the active one.
        pane = self.active_pane(window)
        if pane is None:
            raise MuxrunError("Could not find the pane created by split-window")
        return pane

    def ensure_runner(self, window: str, directory: str) -> str:
        if (pane := self.runner_pane(window)) is not None:
            return pane

        pane = self._create_runner(window)
        for line in directory_commands(directory):
            self.tmux.send_keys(pane, line)
        # Record last: a failure above must not leave a half-made entry.
        self.panes[window] = pane
        logger.info("runner pane %s created for window %s", pane, window)
        return pane

    def run_command(self, window: str, text: str, directory: str) -> str:
        prior = self.active_pane(window)
        pane = self.ensure_runner(window, directory)
        self.tmux.send_keys(pane, text)
        self.last_command = text
        if prior is not None:
            self.tmux.invoke("select-pane", "-t", prior)
        return pane

    def run_last_command(self, window: str, directory: str) -> str:
        if self.last_command is None:
            raise MuxrunError("No command has been run yet")
        return self.run_command(window, self.last_command, directory)

    def inspect(self, window: str) -> None:
        pane = self.require_runner(window)
        self.tmux.invoke("select-pane", "-t", pane)
        self.tmux.invoke("copy-mode", "-t", pane)

    def interrupt(self, window: str) -> None:
        pane = self.require_runner(window)
        self.tmux.send_keys(pane, "C-c", enter=False)

    def clear_history(self, window: str) -> None:
        pane = self.require_runner(window)
        self.tmux.invoke("clear-history", "-t", pane)

    def zoom(self, window: str) -> None:
        pane = self.require_runner(window)
        self.tmux.invoke("resize-pane", "-Z", "-t", pane)

    def close(self, window: str) -> None:
        pane = self.runner_pane(window)
        if pane is not None:
            self.tmux.invoke("kill-pane", "-t", pane)
        self.panes.pop(window, None)
