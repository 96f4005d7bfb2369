from __future__ import annotations

from collections.abc import Sequence


class MuxrunError(Exception):
    """Base exception for muxrun failures shown to the user."""


class ConfigError(MuxrunError):
    """Raised when a configuration value cannot be parsed."""


class TmuxNotRunningError(MuxrunError):
    """Raised when the `has-session` probe fails."""

    def __init__(self, message: str = "'tmux' is not running") -> None:
        super().__init__(message)


class TmuxCommandError(MuxrunError):
    """Raised when a tmux call exits non-zero or is killed by a signal."""

    def __init__(self, args: Sequence[str], returncode: int, output: str) -> None:
        self.argv = list(args)
        self.returncode = returncode
        self.output = output.strip()
        super().__init__(self._describe())

    @property
    def signal(self) -> int | None:
        # subprocess reports death-by-signal as a negative return code.
        return -self.returncode if self.returncode < 0 else None

    def _describe(self) -> str:
        cmd = " ".join(self.argv)
        if self.signal is not None:
            status = f"killed by signal {self.signal}"
        else:
            status = f"exit {self.returncode}"
        if self.output:
            return f"tmux {cmd} failed ({status}): {self.output}"
        return f"tmux {cmd} failed ({status})"


class TmuxTimeoutError(MuxrunError, TimeoutError):
    """Raised when a tmux call did not finish within the configured timeout."""


class NoRunnerPane(MuxrunError):
    """Raised by runner operations when no live runner pane exists."""

    def __init__(self, message: str = "Runner pane is not alive") -> None:
        super().__init__(message)


class SelectionError(MuxrunError):
    """Raised when there is nothing to choose from."""


class UserCancelled(MuxrunError):
    """Raised by a chooser when the user aborts a prompt."""
