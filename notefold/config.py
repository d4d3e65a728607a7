"""Flat configuration and the per-view option overlay."""

from __future__ import annotations

import logging
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import OptionsError

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".notefold.yml"

# Header key the host uses to record where the header sits in the file
RESERVED_POSITION_KEY = "position"


@dataclass(frozen=True)
class NotefoldConfig:
    """Vault-wide settings. CLI flags override these per invocation."""

    exclude_keys: tuple[str, ...] = ("aliases", "cssclasses")
    include_completed: bool = True
    contains: str = ""
    tags: tuple[str, ...] = ("#todo",)
    title_property: str | None = None  # dotted header path shown beside titles
    opt_out_key: str = "notefold-skip"
    template_pattern: str = r"(^|/)templates?(/|$)|(^|/)[^/]*\btemplates?\b[^/]*$"

    def with_overrides(self, **overrides: Any) -> "NotefoldConfig":
        """Return a copy with every non-None override applied."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


_TUPLE_FIELDS = {"exclude_keys", "tags"}


def config_from_mapping(data: Mapping[str, Any]) -> NotefoldConfig:
    """Build a config from a parsed mapping. Raises OptionsError on bad values."""
    known = {f.name for f in fields(NotefoldConfig)}
    values: dict[str, Any] = {}
    for key, value in data.items():
        name = str(key).replace("-", "_")
        if name not in known:
            continue
        if name in _TUPLE_FIELDS:
            if isinstance(value, str):
                value = [value]
            if not isinstance(value, (list, tuple)):
                raise OptionsError(f"{key} must be a list, got {type(value).__name__}")
            value = tuple(str(v) for v in value if v is not None)
        elif name == "include_completed":
            if not isinstance(value, bool):
                raise OptionsError(f"{key} must be true or false")
        elif value is not None:
            value = str(value)
        values[name] = value
    return NotefoldConfig(**values)


def read_config_file(path: Path) -> NotefoldConfig:
    """Strictly load a config file. Raises OptionsError on malformed content."""
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
    except (OSError, yaml.YAMLError) as e:
        raise OptionsError(f"Could not parse {path}: {e}") from e
    if data is None:
        return NotefoldConfig()
    if not isinstance(data, dict):
        raise OptionsError(f"{path} must contain a mapping")
    return config_from_mapping(data)


def load_config(vault_root: Path) -> NotefoldConfig:
    """Load .notefold.yml from the vault root, falling back to defaults."""
    path = vault_root / CONFIG_FILENAME
    if not path.is_file():
        return NotefoldConfig()
    try:
        return read_config_file(path)
    except OptionsError as e:
        logger.debug(f"Using default config: {e}")
        return NotefoldConfig()


def parse_options(source: str | None, defaults: Mapping[str, Any]) -> dict[str, Any]:
    """Merge a short option string over defaults.

    Accepts YAML ("limit: 5", "{sort: mtime}") or a bare value, which is
    assigned to the first of target/date/value present in defaults. YAML
    that fails to parse leaves the defaults unmodified.
    """
    raw = (source or "").strip()
    base = dict(defaults)
    if not raw:
        return base

    if raw.startswith("{") or ":" in raw:
        try:
            parsed = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            logger.debug(f"Could not parse options {raw!r}: {e}")
            return base
        if isinstance(parsed, dict):
            return {**base, **parsed}

    if "target" in defaults:
        fallback_key = "target"
    elif "date" in defaults:
        fallback_key = "date"
    else:
        fallback_key = "value"
    return {**base, fallback_key: raw}
