"""Configuration for muxrun.

Values come from `[muxrun]` in `$XDG_CONFIG_HOME/muxrun/config.toml`, then
`MUXRUN_*` environment variables, then command-line options.

    [muxrun]
    orientation = "horizontal"
    runner_height = 30
    use_nearest_pane = true
    buffer_format = "legacy"   # tmux < 1.7
    timeout = 5.0
"""

from __future__ import annotations

import logging
import os
import tomllib
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any

from .errors import ConfigError
from .formats import BUFFER_FORMATS, BufferFormat, get_buffer_format
from .paths import muxrun_config_path
from .runner import ORIENTATIONS, RunnerOptions

logger = logging.getLogger(__name__)

ENV_PREFIX = "MUXRUN_"
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class MuxrunConfig:
    orientation: str = "vertical"
    runner_height: int = 20
    use_nearest_pane: bool = False
    buffer_format: str = "named"
    timeout: float | None = None
    tmux_socket: Path | None = None

    def __post_init__(self) -> None:
        if self.orientation not in ORIENTATIONS:
            raise ConfigError(f"orientation must be one of {', '.join(ORIENTATIONS)}, got {self.orientation!r}")
        if not 1 <= self.runner_height <= 99:
            raise ConfigError(f"runner_height must be a percentage between 1 and 99, got {self.runner_height}")
        if self.buffer_format not in BUFFER_FORMATS:
            raise ConfigError(f"buffer_format must be one of {', '.join(sorted(BUFFER_FORMATS))}, got {self.buffer_format!r}")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")

    def runner_options(self) -> RunnerOptions:
        return RunnerOptions(
            orientation=self.orientation,
            height=self.runner_height,
            use_nearest_pane=self.use_nearest_pane,
        )

    def buffers(self) -> BufferFormat:
        return get_buffer_format(self.buffer_format)

    def with_overrides(self, **overrides: Any) -> "MuxrunConfig":
        """Return a copy with every non-None override applied."""

        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def _coerce(name: str, raw: Any) -> Any:
    try:
        if name == "runner_height":
            return int(raw)
        if name == "timeout":
            return float(raw)
        if name == "tmux_socket":
            return Path(raw).expanduser()
        if name == "use_nearest_pane":
            if isinstance(raw, bool):
                return raw
            value = str(raw).strip().lower()
            if value in _TRUE:
                return True
            if value in _FALSE:
                return False
            raise ValueError(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"invalid value for {name}: {raw!r}") from None
    return str(raw)


def _load_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"{path}: {e}") from e

    section = data.get("muxrun", {})
    if not isinstance(section, dict):
        raise ConfigError(f"{path}: [muxrun] must be a table")
    return section


def load_config(path: Path | None = None, env: Mapping[str, str] | None = None) -> MuxrunConfig:
    path = path or muxrun_config_path()
    env = os.environ if env is None else env

    known = {f.name for f in fields(MuxrunConfig)}
    values: dict[str, Any] = {}

    for key, raw in _load_file(path).items():
        if key not in known:
            logger.warning("%s: ignoring unknown option %r", path, key)
            continue
        values[key] = _coerce(key, raw)

    for name in known:
        raw = env.get(ENV_PREFIX + name.upper())
        if raw:
            values[name] = _coerce(name, raw)

    logger.debug("config from %s: %s", path, values)
    return MuxrunConfig(**values)
