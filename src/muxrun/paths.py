from __future__ import annotations

import os
from pathlib import Path


def xdg_config_home() -> Path:
    # https://specifications.freedesktop.org/basedir-spec/basedir-spec-latest.html
    return Path(os.environ.get("XDG_CONFIG_HOME", Path.home() / ".config")).expanduser()


def muxrun_config_path() -> Path:
    return xdg_config_home() / "muxrun" / "config.toml"
