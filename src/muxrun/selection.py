from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from .errors import SelectionError, UserCancelled
from .formats import PANE_INDEX_FORMAT, SESSION_NAME_FORMAT, WINDOW_INDEX_FORMAT
from .tmux import Tmux
from .tmux_target import TmuxTarget

logger = logging.getLogger(__name__)


class Chooser(Protocol):
    def choose_one(self, prompt: str, candidates: Sequence[str]) -> str:
        """Return one of `candidates` or raise UserCancelled."""
        ...


@dataclass
class Selection:
    """The session/window/pane the send commands talk to."""

    session: str | None = None
    window: str | None = None
    pane: str | None = None

    def set_session(self, session: str) -> None:
        if session != self.session:
            self.window = None
            self.pane = None
        self.session = session

    def set_window(self, window: str) -> None:
        if window != self.window:
            self.pane = None
        self.window = window

    def set_pane(self, pane: str) -> None:
        self.pane = pane

    def set_target(self, target: TmuxTarget) -> None:
        self.session = target.session
        self.window = target.window
        self.pane = target.pane

    def clear(self) -> None:
        self.session = None
        self.window = None
        self.pane = None

    @property
    def is_complete(self) -> bool:
        return self.target().is_complete

    def target(self) -> TmuxTarget:
        return TmuxTarget(session=self.session, window=self.window, pane=self.pane)


class SelectionResolver:
    """Fills in a Selection from live tmux listings, asking the chooser when needed."""

    def __init__(self, tmux: Tmux, selection: Selection, chooser: Chooser) -> None:
        self.tmux = tmux
        self.selection = selection
        self.chooser = chooser

    def sessions(self) -> list[str]:
        return self.tmux.invoke_lines("list-sessions", "-F", SESSION_NAME_FORMAT)

    def windows(self) -> list[str]:
        args = ["list-windows", "-F", WINDOW_INDEX_FORMAT]
        if self.selection.session:
            args += ["-t", self.selection.session]
        return self.tmux.invoke_lines(*args)

    def panes(self) -> list[str]:
        target = self.selection.target().window_target()
        return self.tmux.invoke_lines("list-panes", "-t", target, "-F", PANE_INDEX_FORMAT)

    def _pick(self, prompt: str, candidates: list[str]) -> str:
        if not candidates:
            raise SelectionError(f"No candidates for {prompt.rstrip(': ').lower()}")
        if len(candidates) == 1:
            return candidates[0]
        choice = self.chooser.choose_one(prompt, candidates)
        if choice not in candidates:
            raise SelectionError(f"{choice!r} is not one of {', '.join(candidates)}")
        return choice

    def resolve(self, *, force: bool = False) -> TmuxTarget:
        """Return a complete target, prompting for whatever is missing.

        With `force` every level is asked again. A cancelled prompt clears
        the selection before UserCancelled propagates.
        """

        if force:
            self.selection.clear()

        steps: list[tuple[str, str, Callable[[], list[str]], Callable[[str], None]]] = [
            ("Session: ", "session", self.sessions, self.selection.set_session),
            ("Window: ", "window", self.windows, self.selection.set_window),
            ("Pane: ", "pane", self.panes, self.selection.set_pane),
        ]
        try:
            for prompt, attr, list_candidates, assign in steps:
                if getattr(self.selection, attr):
                    continue
                assign(self._pick(prompt, list_candidates()))
        except UserCancelled:
            logger.debug("selection cancelled; clearing")
            self.selection.clear()
            raise

        target = self.selection.target()
        logger.debug("resolved target %s", target)
        return target
