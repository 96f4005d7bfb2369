from __future__ import annotations

import re
import shlex
from dataclasses import dataclass

# Editor-style remote paths: /ssh:user@host#2222:/srv/app
# Multi-hop paths (/ssh:gw|ssh:box:/srv) log in to the first hop only.
_REMOTE_RE = re.compile(
    r"^/(?P<method>[a-z][\w-]*):"
    r"(?:(?P<user>[^@|:/]+)@)?(?P<host>[^#|:/]+)(?:#(?P<port>\d+))?"
    r"(?:\|[^:]*:[^:]*)*:"
    r"(?P<path>.*)$"
)

LOGIN_METHODS = frozenset({"ssh", "scp", "sshx", "scpx", "rsync"})


@dataclass(frozen=True, slots=True)
class RemoteLocation:
    method: str
    user: str | None
    host: str
    port: int | None
    path: str

    def login_command(self) -> str:
        args = ["ssh"]
        if self.user:
            args += ["-l", self.user]
        if self.port is not None:
            args += ["-p", str(self.port)]
        args.append(self.host)
        return shlex.join(args)


def parse_remote(directory: str) -> RemoteLocation | None:
    m = _REMOTE_RE.match(directory)
    if m is None or m.group("method") not in LOGIN_METHODS:
        return None
    port = m.group("port")
    return RemoteLocation(
        method=m.group("method"),
        user=m.group("user"),
        host=m.group("host"),
        port=int(port) if port else None,
        path=m.group("path") or "~",
    )


def cd_command(path: str) -> str:
    if path == "~" or path.startswith("~/"):
        # Leave the tilde unquoted so the remote shell expands it.
        return "cd " + ("~/" + shlex.quote(path[2:]) if path[2:] else "~")
    return f"cd {shlex.quote(path)}"


def directory_commands(directory: str) -> list[str]:
    """Shell lines that bring a fresh pane to `directory`, logging in first if remote."""

    remote = parse_remote(directory)
    if remote is None:
        return [cd_command(directory)]
    return [remote.login_command(), cd_command(remote.path)]
