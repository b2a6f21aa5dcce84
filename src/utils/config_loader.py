# src/utils/config_loader.py
from __future__ import annotations

import copy
import os
import tomllib
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv

from src.cca_bids.errors import ConfigNotFound, ConfigParseError

DEFAULT_CONFIG_PATH = Path("bids.toml")
DEFAULT_ENV_PREFIX = "BIDS_"

# Keys the env overlay may target even when the file leaves them out.
_DEFAULTS: Dict[str, Any] = {
    "logging": {"level": "", "file": ""},
}


def _deep_merge(a: Dict[str, Any], b: Mapping[str, Any]) -> Dict[str, Any]:
    out = dict(a)
    for k, v in b.items():
        if k in out and isinstance(out[k], dict) and isinstance(v, dict):
            out[k] = _deep_merge(out[k], v)
        else:
            out[k] = v
    return out


def _cast_like(current: Any, raw: str) -> Any:
    """Cast an env string to the type of the value it replaces."""
    if isinstance(current, bool):
        return raw.strip().lower() in {"1", "true", "yes", "on"}
    if isinstance(current, int):
        try:
            return int(raw)
        except ValueError:
            return raw
    if isinstance(current, (float, Decimal)):
        try:
            return Decimal(raw.strip())
        except InvalidOperation:
            return raw
    return raw


class Config:
    """
    TOML config loader with:
      - defaults deep-merged under the file contents
      - .env loading and a prefixed environment variable overlay
      - dot-path get() access
      - reload() support

    A missing file raises ConfigNotFound and malformed TOML raises
    ConfigParseError; there is no silent fallback to defaults.
    """

    def __init__(self, path: Optional[Path | str] = None, env_prefix: str = DEFAULT_ENV_PREFIX):
        self.path = Path(path) if path else DEFAULT_CONFIG_PATH
        self.env_prefix = env_prefix
        self._cfg: Dict[str, Any] = {}
        self.reload()

    def _read_toml(self) -> Dict[str, Any]:
        if not self.path.is_file():
            raise ConfigNotFound(self.path)
        try:
            with self.path.open("rb") as f:
                return tomllib.load(f, parse_float=Decimal)
        except tomllib.TOMLDecodeError as exc:
            raise ConfigParseError(self.path, str(exc)) from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigParseError(self.path, str(exc)) from exc

    def _overlay_env(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Overlay environment variables onto matching config keys.

        Convention:
          - The prefix is stripped first (BIDS_BID__MAX_BID -> BID__MAX_BID)
          - Double underscore __ => dot path separator (BID__MAX_BID -> bid.max_bid)
          - Single underscores are preserved as part of the key name
        Only keys that already exist (in the file or the defaults) are applied,
        matched case-insensitively.
        """
        if not self.env_prefix:
            return data

        flat: Dict[str, Any] = {}

        def walk(prefix: str, obj: Any):
            if isinstance(obj, dict):
                for k, v in obj.items():
                    walk(f"{prefix}.{k}" if prefix else k, v)
            else:
                flat[prefix] = obj

        walk("", data)
        flat_keys_lower = {k.lower(): k for k in flat.keys()}

        plen = len(self.env_prefix)
        for env_key, env_val in os.environ.items():
            if not env_key.upper().startswith(self.env_prefix.upper()):
                continue
            dot_key_lower = env_key[plen:].lower().replace("__", ".")
            real_key = flat_keys_lower.get(dot_key_lower)
            if real_key is None:
                continue
            self._assign(data, real_key, _cast_like(flat[real_key], env_val))

        return data

    def _assign(self, root: Dict[str, Any], dot_key: str, value: Any) -> None:
        keys = dot_key.split(".")
        d = root
        for k in keys[:-1]:
            if k not in d or not isinstance(d[k], dict):
                d[k] = {}
            d = d[k]
        d[keys[-1]] = value

    def reload(self) -> None:
        base = self._read_toml()
        merged = _deep_merge(copy.deepcopy(_DEFAULTS), base)
        self._cfg = self._overlay_env(merged)

    def get(self, key: Optional[str] = None, default: Any = None) -> Any:
        """
        Dot-path access. If key is None, return whole config dict.
        """
        if key is None:
            return self._cfg
        node: Any = self._cfg
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node


def load_dotenv_file(path: Optional[Path | str] = None) -> bool:
    """Load ``.env`` (cwd by default) without clobbering the real environment."""
    return load_dotenv(Path(path) if path else Path.cwd() / ".env", override=False)


def load_config(
    path: Optional[Path | str] = None, env_prefix: str = DEFAULT_ENV_PREFIX
) -> Config:
    load_dotenv_file()
    return Config(path, env_prefix=env_prefix)
