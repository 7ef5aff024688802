"""
Configuration for krill.

The config file is plain text, one `key value` pair per line, `#` starts a comment:

    # ~/.config/krill/krill.conf
    tls yes
    tor no
    emoji yes
    start gopher://gopher.floodgap.com/

Command-line flags are applied on top of the loaded values.
"""
from __future__ import annotations

import os
from dataclasses import dataclass, fields

from krill import logger
from krill.transport import DEFAULT_PROXY_HOST, DEFAULT_PROXY_PORT, TransportMode

CONFIG_DIR = os.path.expanduser("~/.config/krill")
CONFIG_FILE = os.path.join(CONFIG_DIR, "krill.conf")
HISTORY_FILE = os.path.join(CONFIG_DIR, "history.gph")
BOOKMARKS_FILE = os.path.join(CONFIG_DIR, "bookmarks.gph")
HOME_URL = "gopher://help/1/"

TRUE_WORDS = {"yes", "y", "true", "on", "1"}
FALSE_WORDS = {"no", "n", "false", "off", "0"}


class ConfigError(Exception):
    """The requested config file can't be used."""


@dataclass
class Config:
    tls: bool = False
    tor: bool = False
    verify_tls: bool = True
    wide: bool = False
    emoji: bool = False
    color: bool = True
    proxy_host: str = DEFAULT_PROXY_HOST
    proxy_port: int = DEFAULT_PROXY_PORT
    timeout: float = 8.0
    start: str = HOME_URL
    download_dir: str = "~/Downloads"
    history_file: str = HISTORY_FILE
    bookmarks_file: str = BOOKMARKS_FILE
    log: str = ""

    @property
    def transport_mode(self) -> TransportMode:
        return TransportMode.select(self.tls, self.tor)

    @property
    def proxy(self) -> tuple:
        return (self.proxy_host, self.proxy_port)

    def set(self, key: str, value: str) -> None:
        """Set option `key` from its text form, converting to the option's type."""
        types = {f.name: f.type for f in fields(self)}
        if key not in types:
            raise ConfigError(f"unknown option: {key}")
        kind = types[key]
        if kind == "bool":
            word = value.strip().lower()
            if word in TRUE_WORDS:
                converted = True
            elif word in FALSE_WORDS:
                converted = False
            else:
                raise ConfigError(f"{key}: expected yes or no, got {value!r}")
        elif kind in ("int", "float"):
            try:
                converted = int(value) if kind == "int" else float(value)
            except ValueError:
                raise ConfigError(f"{key}: expected a number, got {value!r}") from None
        else:
            converted = value.strip()
        setattr(self, key, converted)


def parse_config(text: str, config: Config | None = None) -> Config:
    """Apply every `key value` line of `text`. Bad lines are logged and skipped."""
    config = config or Config()
    for number, line in enumerate(text.splitlines(), 1):
        line = line.split("#", 1)[0].strip()
        if not line:
            continue
        key, _, value = line.partition(" ")
        try:
            config.set(key.strip().replace("-", "_"), value.strip())
        except ConfigError as e:
            logger.log(f"config line {number}: {e}", level="warning")
    return config


def load_config(path: str | None = None) -> Config:
    """
    Load the config file. Without an explicit `path` the default file is used if it
    exists; an explicit path that can't be read raises ConfigError.
    """
    if path is None:
        if not os.path.isfile(CONFIG_FILE):
            return Config()
        path = CONFIG_FILE
    try:
        with open(os.path.expanduser(path), "r", encoding="utf-8") as f:
            text = f.read()
    except OSError as e:
        raise ConfigError(f"can't read config file {path}: {e.strerror or e}") from e
    config = parse_config(text)
    if config.log:
        logger.set_log_file(config.log)
    return config
