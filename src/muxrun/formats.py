from __future__ import annotations

import re
from collections.abc import Iterable
from dataclasses import dataclass

# Format strings passed to `-F`. Kept in one place so a tmux release that
# changes its listing output only needs an edit here.
SESSION_NAME_FORMAT = "#S"
WINDOW_INDEX_FORMAT = "#I"
PANE_INDEX_FORMAT = "#P"

ACTIVE_MARKER = "(active)"

# Matches default `list-panes`/`list-windows` output, e.g.
#   0: [80x24] [history 0/2000, 0 bytes] %3 (active)
# as well as `-F` output such as "0 (active)" or "1".
_ENTRY_RE = re.compile(r"^(?P<index>[^\s:]+):?(?P<rest>.*?)(?P<active>\s\(active\))?\s*$")
_UNIQUE_ID_RE = re.compile(r"(?:^|\s)(?P<id>[%@$]\d+)$")


@dataclass(frozen=True, slots=True)
class ListEntry:
    id: str
    active: bool


def parse_entry(line: str) -> ListEntry | None:
    line = line.rstrip("\n")
    if not line.strip():
        return None
    m = _ENTRY_RE.match(line)
    if m is None:
        return None

    entry_id = m.group("index")
    rest = m.group("rest").rstrip()
    if (uid := _UNIQUE_ID_RE.search(rest)):
        # Prefer %pane/@window ids: they survive renumbering.
        entry_id = uid.group("id")

    return ListEntry(id=entry_id, active=m.group("active") is not None)


def parse_entries(lines: Iterable[str]) -> list[ListEntry]:
    return [e for e in (parse_entry(line) for line in lines) if e is not None]


def active_id(lines: Iterable[str]) -> str | None:
    """Id of the first entry marked `(active)`, or None."""

    for entry in parse_entries(lines):
        if entry.active:
            return entry.id
    return None


def nearest_inactive_id(lines: Iterable[str]) -> str | None:
    """Id of the first entry not marked `(active)`, or None."""

    for entry in parse_entries(lines):
        if not entry.active:
            return entry.id
    return None


@dataclass(frozen=True, slots=True)
class BufferFormat:
    name: str
    pattern: re.Pattern[str]


@dataclass(frozen=True, slots=True)
class BufferEntry:
    name: str
    size: int
    sample: str


# tmux < 1.7 lists buffers by bare index; later releases prefix "buffer".
# Either id is passed back to `show-buffer -b` as listed.
BUFFER_FORMATS: dict[str, BufferFormat] = {
    "legacy": BufferFormat(
        name="legacy",
        pattern=re.compile(r'^(?P<name>\d+): +(?P<size>\d+) +bytes: +"(?P<sample>.*)"$'),
    ),
    "named": BufferFormat(
        name="named",
        pattern=re.compile(r'^(?P<name>buffer\d+): +(?P<size>\d+) +bytes: +"(?P<sample>.*)"$'),
    ),
}


def get_buffer_format(name: str) -> BufferFormat:
    try:
        return BUFFER_FORMATS[name]
    except KeyError:
        known = ", ".join(sorted(BUFFER_FORMATS))
        raise ValueError(f"unknown buffer format {name!r} (expected one of: {known})") from None


def parse_buffers(lines: Iterable[str], fmt: BufferFormat) -> list[BufferEntry]:
    """Parse `list-buffers` output. Lines that do not match are skipped."""

    buffers: list[BufferEntry] = []
    for raw_line in lines:
        m = fmt.pattern.match(raw_line.rstrip("\n"))
        if m is None:
            continue
        buffers.append(BufferEntry(name=m.group("name"), size=int(m.group("size")), sample=m.group("sample")))
    return buffers
