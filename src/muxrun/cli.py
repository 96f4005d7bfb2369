from __future__ import annotations

import logging
import os
import shlex
import sys
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path

import typer
from rich import print
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt

from .commands import Muxrun
from .config import MuxrunConfig, load_config
from .errors import MuxrunError, UserCancelled
from .logging_config import setup_logging
from .paths import muxrun_config_path
from .tmux import Tmux
from .tmux_target import TmuxTarget, default_tmux_socket

logger = logging.getLogger(__name__)

err_console = Console(stderr=True)

app = typer.Typer(no_args_is_help=True, help="muxrun — drive tmux panes from your editor")
runner_app = typer.Typer(no_args_is_help=True, help="Manage the runner pane of the current window")
app.add_typer(runner_app, name="runner")


class PromptChooser:
    """Numbered-list chooser on the terminal."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or err_console

    def choose_one(self, prompt: str, candidates: Sequence[str]) -> str:
        for i, candidate in enumerate(candidates, 1):
            self.console.print(f"  [cyan]{i}[/cyan] {candidate}")
        try:
            answer = Prompt.ask(prompt.rstrip(": "), console=self.console).strip()
        except (EOFError, KeyboardInterrupt):
            raise UserCancelled() from None
        if not answer:
            raise UserCancelled()
        if answer.isdigit() and 1 <= int(answer) <= len(candidates):
            return candidates[int(answer) - 1]
        return answer


@contextmanager
def reported_errors() -> Iterator[None]:
    try:
        yield
    except MuxrunError as e:
        err_console.print(f"[red]error:[/red] {escape(str(e))}", highlight=False)
        raise typer.Exit(1) from e


class State:
    config: MuxrunConfig = MuxrunConfig()


state = State()


def make_muxrun(config: MuxrunConfig) -> Muxrun:
    tmux = Tmux(socket_path=config.tmux_socket, timeout_s=config.timeout)
    return Muxrun(tmux, config, PromptChooser())


def read_text(value: str | None) -> str:
    if value is None or value == "-":
        return sys.stdin.read()
    return value


@app.callback()
def main_options(
    config_path: Path | None = typer.Option(None, "--config", help="Path to config.toml"),
    tmux_socket: Path | None = typer.Option(None, "--tmux-socket", help="Path to tmux server socket"),
    timeout: float | None = typer.Option(None, "--timeout", help="Seconds before a tmux call is abandoned"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every tmux call to stderr"),
) -> None:
    setup_logging(verbose)
    with reported_errors():
        state.config = load_config(config_path).with_overrides(tmux_socket=tmux_socket, timeout=timeout)


@app.command("version")
def version() -> None:
    from . import __version__

    print(__version__)


@app.command("status")
def status() -> None:
    """Show which tmux server muxrun talks to."""

    config = state.config
    tmux = Tmux(socket_path=config.tmux_socket, timeout_s=config.timeout)
    with reported_errors():
        running = tmux.is_running()
    print({
        "running": running,
        "tmux_socket": str(config.tmux_socket or default_tmux_socket()),
        "config_path": str(muxrun_config_path()),
        "orientation": config.orientation,
        "runner_height": config.runner_height,
        "use_nearest_pane": config.use_nearest_pane,
        "buffer_format": config.buffer_format,
    })


@app.command("send")
def send(
    text: str = typer.Argument(..., help="Text to send; '-' reads stdin"),
    target: str | None = typer.Option(None, "--target", "-t", help="session:window.pane"),
) -> None:
    mux = make_muxrun(state.config)
    with reported_errors():
        if target:
            mux.selection.set_target(TmuxTarget.parse(target))
        sent_to = mux.send_command(read_text(text).rstrip("\n"))
    if sent_to is not None:
        logger.info("sent to %s", sent_to)


@app.command("send-region")
def send_region(
    source: str = typer.Argument("-", help="File whose lines are sent; '-' reads stdin"),
    target: str | None = typer.Option(None, "--target", "-t", help="session:window.pane"),
) -> None:
    text = sys.stdin.read() if source == "-" else Path(source).read_text(encoding="utf-8")
    mux = make_muxrun(state.config)
    with reported_errors():
        if target:
            mux.selection.set_target(TmuxTarget.parse(target))
        mux.send_region(text)


@app.command("yank")
def yank() -> None:
    """Print a chosen tmux paste-buffer on stdout."""

    mux = make_muxrun(state.config)
    with reported_errors():
        text = mux.yank_from_buffers()
    if text is not None:
        sys.stdout.write(text)


@app.command("copy")
def copy(
    data: str = typer.Argument("-", help="Text for the buffer; '-' reads stdin"),
    index: str | None = typer.Option(None, "--index", "-b", help="Buffer to overwrite"),
) -> None:
    """Store text in a tmux paste-buffer."""

    mux = make_muxrun(state.config)
    with reported_errors():
        mux.copy_to_buffer(read_text(data), index=index)


@app.command("new-window")
def new_window(
    directory: str | None = typer.Option(None, "--dir", "-d", help="Directory (local or /ssh:host:/path) to start in"),
) -> None:
    mux = make_muxrun(state.config)
    with reported_errors():
        mux.new_window(directory)


@app.command("split")
def split(
    directory: str | None = typer.Option(None, "--dir", "-d", help="Directory (local or /ssh:host:/path) to start in"),
    horizontal: bool | None = typer.Option(None, "--horizontal/--vertical", help="Split orientation"),
) -> None:
    mux = make_muxrun(state.config)
    with reported_errors():
        mux.split_window(directory, horizontal=horizontal)


@app.command("clone")
def clone(
    files: list[str] = typer.Argument(None, help="Files to reopen"),
    directory: str | None = typer.Option(None, "--dir", "-d", help="Directory to start in; defaults to the current one"),
    editor: str | None = typer.Option(None, "--editor", help="Editor command; defaults to $EDITOR"),
    split_pane: bool = typer.Option(False, "--split", help="Clone into a split instead of a new window"),
) -> None:
    """Reopen the given files in an editor in a new window."""

    editor_cmd = editor or os.environ.get("EDITOR", "vi")

    def replay() -> str:
        return " ".join([editor_cmd, *(shlex.quote(f) for f in files or [])])

    mux = make_muxrun(state.config)
    with reported_errors():
        mux.clone_window(directory or os.getcwd(), replay, split=split_pane)


@app.command("goto")
def goto(target: str = typer.Argument(..., help="session:window[.pane]")) -> None:
    mux = make_muxrun(state.config)
    with reported_errors():
        mux.goto_window(TmuxTarget.parse(target))


@app.command("close-panes")
def close_panes(
    target: str | None = typer.Option(None, "--target", "-t", help="Pane to keep"),
) -> None:
    """Kill every pane except the current (or given) one."""

    mux = make_muxrun(state.config)
    with reported_errors():
        mux.close_panes(TmuxTarget.parse(target) if target else None)


@app.command("shell")
def shell() -> None:
    """Interactive session that keeps the target and runner panes between commands."""

    from .repl import MuxrunShell

    MuxrunShell(make_muxrun(state.config)).loop()


# Runner commands. A one-shot process starts with no runner; pass the pane id
# printed by `muxrun runner run` back with --pane to address it again.

def runner_muxrun(pane: str | None) -> Muxrun:
    mux = make_muxrun(state.config)
    if pane:
        with reported_errors():
            mux.tmux.ensure_running()
            mux.runner.panes[mux.runner.current_window()] = pane
    return mux


PaneOption = typer.Option(None, "--pane", "-p", help="Runner pane id from an earlier `runner run`")


@runner_app.command("run")
def runner_run(
    command: str = typer.Argument(..., help="Command line to run; '-' reads stdin"),
    directory: str | None = typer.Option(None, "--dir", "-d", help="Directory the runner starts in; defaults to the current one"),
    pane: str | None = PaneOption,
) -> None:
    mux = runner_muxrun(pane)
    with reported_errors():
        runner_pane = mux.run_command(read_text(command).rstrip("\n"), directory or os.getcwd())
    print(runner_pane)


@runner_app.command("inspect")
def runner_inspect(pane: str | None = PaneOption) -> None:
    mux = runner_muxrun(pane)
    with reported_errors():
        mux.inspect_runner()


@runner_app.command("interrupt")
def runner_interrupt(pane: str | None = PaneOption) -> None:
    mux = runner_muxrun(pane)
    with reported_errors():
        mux.interrupt_runner()


@runner_app.command("clear")
def runner_clear(pane: str | None = PaneOption) -> None:
    mux = runner_muxrun(pane)
    with reported_errors():
        mux.clear_runner_history()


@runner_app.command("zoom")
def runner_zoom(pane: str | None = PaneOption) -> None:
    mux = runner_muxrun(pane)
    with reported_errors():
        mux.zoom_runner()


@runner_app.command("close")
def runner_close(pane: str | None = PaneOption) -> None:
    mux = runner_muxrun(pane)
    with reported_errors():
        mux.close_runner()


def main() -> None:
    app()
