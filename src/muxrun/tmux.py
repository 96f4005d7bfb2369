from __future__ import annotations

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path

from .errors import TmuxCommandError, TmuxNotRunningError, TmuxTimeoutError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class TmuxResult:
    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def split_output_lines(output: str) -> list[str]:
    """Split tmux output into lines, dropping trailing blank lines."""

    lines = output.splitlines()
    while lines and not lines[-1].strip():
        lines.pop()
    return lines


class Tmux:
    """Runs the tmux binary, one subprocess per call.

    `run()` is the raw boundary and never raises on a non-zero exit;
    `invoke()` and `invoke_lines()` turn failures into `TmuxCommandError`.
    """

    def __init__(
        self,
        *,
        socket_path: Path | None = None,
        timeout_s: float | None = None,
        binary: str = "tmux",
    ) -> None:
        self.socket_path = socket_path
        self.timeout_s = timeout_s
        self.binary = binary

    def argv(self, args: tuple[str, ...]) -> list[str]:
        cmd = [self.binary]
        if self.socket_path is not None:
            cmd += ["-S", str(self.socket_path)]
        return cmd + list(args)

    def _spawn(self, argv: list[str]) -> TmuxResult:
        try:
            p = subprocess.run(
                argv,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
            )
        except subprocess.TimeoutExpired as e:
            raise TmuxTimeoutError(f"{' '.join(argv)} timed out after {self.timeout_s}s") from e
        return TmuxResult(returncode=p.returncode, stdout=p.stdout, stderr=p.stderr)

    def run(self, *args: str) -> TmuxResult:
        argv = self.argv(args)
        logger.debug("running %s", argv)
        result = self._spawn(argv)
        if not result.ok:
            logger.debug("%s exited %d: %s", argv, result.returncode, result.stderr.strip())
        return result

    def invoke(self, *args: str) -> str:
        result = self.run(*args)
        if not result.ok:
            raise TmuxCommandError(args, result.returncode, result.stderr or result.stdout)
        return result.stdout

    def invoke_lines(self, *args: str) -> list[str]:
        return split_output_lines(self.invoke(*args))

    def is_running(self) -> bool:
        try:
            return self.run("has-session").ok
        except FileNotFoundError:
            # tmux not installed.
            return False

    def ensure_running(self) -> None:
        if not self.is_running():
            raise TmuxNotRunningError()

    def send_keys(self, target: str | None, text: str, *, enter: bool = True) -> None:
        args = ["send-keys"]
        if target:
            args += ["-t", target]
        if text:
            args.append(escape_keys(text))
        if enter:
            args.append("C-m")
        self.invoke(*args)


def escape_keys(text: str) -> str:
    # tmux reads a trailing ";" as a command separator.
    if text.endswith(";") and not text.endswith("\\;"):
        return text[:-1] + "\\;"
    return text
