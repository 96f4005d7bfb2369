from __future__ import annotations

import logging
import os
import shlex
import sys
from collections.abc import Callable
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from .commands import Muxrun
from .errors import MuxrunError
from .tmux_target import TmuxTarget

logger = logging.getLogger(__name__)

RAW_TEXT_COMMANDS = frozenset({"send", "run", "copy"})


class MuxrunShell:
    """A line-oriented session standing in for an editor.

    The same Muxrun serves every line, so the selected target and the
    runner panes survive from one command to the next. `cd` changes the
    directory new runners, windows and splits start in; it may be an
    editor-style remote path such as /ssh:host:/srv.
    """

    def __init__(self, mux: Muxrun, *, console: Console | None = None, directory: str | None = None) -> None:
        self.mux = mux
        self.console = console or Console()
        self.directory = directory or os.getcwd()
        self.handlers: dict[str, Callable[[list[str]], None]] = {
            "send": self.do_send,
            "target": self.do_target,
            "choose": self.do_choose,
            "yank": self.do_yank,
            "copy": self.do_copy,
            "run": self.do_run,
            "last": self.do_last,
            "inspect": lambda _args: self.mux.inspect_runner(),
            "interrupt": lambda _args: self.mux.interrupt_runner(),
            "clear": lambda _args: self.mux.clear_runner_history(),
            "zoom": lambda _args: self.mux.zoom_runner(),
            "close": lambda _args: self.mux.close_runner(),
            "alive": self.do_alive,
            "new-window": lambda args: self.mux.new_window(self._dir_arg(args)),
            "split": lambda args: self.mux.split_window(self._dir_arg(args)),
            "close-panes": lambda _args: self.mux.close_panes(),
            "goto": self.do_goto,
            "cd": self.do_cd,
            "pwd": lambda _args: self.console.print(self.directory),
            "help": self.do_help,
        }

    def _dir_arg(self, args: list[str]) -> str:
        return args[0] if args else self.directory

    def do_send(self, args: list[str]) -> None:
        target = self.mux.send_command(" ".join(args))
        if target is not None:
            self.console.print(f"sent to {target}")

    def do_target(self, args: list[str]) -> None:
        if not args:
            self.console.print(str(self.mux.selection.target()))
            return
        target = self.mux.set_target(TmuxTarget.parse(args[0]))
        if target is not None:
            self.console.print(f"target {target}")

    def do_choose(self, _args: list[str]) -> None:
        target = self.mux.choose_target()
        if target is not None:
            self.console.print(f"target {target}")

    def do_yank(self, _args: list[str]) -> None:
        text = self.mux.yank_from_buffers()
        if text is not None:
            sys.stdout.write(text)
            if not text.endswith("\n"):
                sys.stdout.write("\n")

    def do_copy(self, args: list[str]) -> None:
        self.mux.copy_to_buffer(" ".join(args))

    def do_run(self, args: list[str]) -> None:
        pane = self.mux.run_command(" ".join(args), self.directory)
        self.console.print(f"runner {pane}")

    def do_last(self, _args: list[str]) -> None:
        self.mux.run_last_command(self.directory)

    def do_alive(self, _args: list[str]) -> None:
        self.console.print("alive" if self.mux.runner_alive() else "no runner")

    def do_goto(self, args: list[str]) -> None:
        if not args:
            raise MuxrunError("usage: goto session:window[.pane]")
        self.mux.goto_window(TmuxTarget.parse(args[0]))

    def do_cd(self, args: list[str]) -> None:
        path = args[0] if args else str(Path.home())
        if not path.startswith("/") and not path.startswith("~"):
            path = os.path.join(self.directory, path)
        self.directory = os.path.expanduser(path) if path.startswith("~") else path

    def do_help(self, _args: list[str]) -> None:
        self.console.print("commands: " + ", ".join(sorted(self.handlers)) + ", quit")

    def execute(self, line: str) -> bool:
        """Run one line. Returns False when the session should end."""

        name, _, rest = line.strip().partition(" ")
        if not name:
            return True

        if name in RAW_TEXT_COMMANDS:
            # Sent to the shell in the pane as typed, quotes included.
            args = [rest.strip()] if rest.strip() else []
        else:
            try:
                args = shlex.split(rest)
            except ValueError as e:
                self.console.print(f"[red]error:[/red] {escape(str(e))}")
                return True
        logger.debug("shell: %s %s", name, args)
        if name in ("quit", "exit"):
            return False

        handler = self.handlers.get(name)
        if handler is None:
            self.console.print(f"[red]unknown command:[/red] {name} (try 'help')")
            return True

        try:
            handler(args)
        except MuxrunError as e:
            self.console.print(f"[red]error:[/red] {escape(str(e))}")
        return True

    def loop(self) -> None:
        while True:
            try:
                line = Prompt.ask("[bold]muxrun[/bold]", console=self.console)
            except (EOFError, KeyboardInterrupt):
                self.console.print()
                return
            if not self.execute(line):
                return
