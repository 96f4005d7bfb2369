from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class TmuxTarget:
    """A `session:window.pane` address. Unset parts are None."""

    session: str | None = None
    window: str | None = None
    pane: str | None = None

    @property
    def is_complete(self) -> bool:
        return bool(self.session and self.window and self.pane)

    def format(self) -> str:
        # Unset parts are left empty; tmux resolves them against the current client.
        return f"{self.session or ''}:{self.window or ''}.{self.pane or ''}"

    def window_target(self) -> str:
        return f"{self.session or ''}:{self.window or ''}"

    def __str__(self) -> str:
        return self.format()

    @staticmethod
    def parse(value: str) -> "TmuxTarget":
        # "work:2.1", "work:2", "work", ":2.1"
        session, sep, rest = value.partition(":")
        window, pane = (rest.split(".", 1) + [""])[:2] if sep else ("", "")
        return TmuxTarget(session=session or None, window=window or None, pane=pane or None)


def default_tmux_socket() -> Path:
    # If started inside tmux, $TMUX looks like: "/tmp/tmux-501/default,12345,0"
    tmux = os.environ.get("TMUX")
    if tmux:
        socket = tmux.split(",", 1)[0]
        return Path(socket)

    uid = os.getuid()
    return Path(f"/tmp/tmux-{uid}/default")
