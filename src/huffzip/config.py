"""Runtime config (v1) for huffzip.

Goal: make compress runs reproducible and portable (CLI, scripts, CI).

This module intentionally stays *small* and strict:
  - JSON only
  - explicit schema id
  - unknown keys are rejected
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from huffzip.core.bitio import DEFAULT_MAX_OUTPUT_BYTES, MIN_FRAME_BYTES

CONFIG_ID_V1 = "huffzip.config.v1"


class ConfigError(ValueError):
    pass


def _load_json_arg(config_arg: str) -> dict[str, Any]:
    s = config_arg.strip()
    if not s:
        raise ConfigError("config: argomento vuoto")

    if s.startswith("@"):
        p = Path(s[1:]).expanduser()
        if not p.exists() or not p.is_file():
            raise ConfigError(f"config: file non trovato: {p}")
        raw = p.read_text(encoding="utf-8")
        try:
            obj = json.loads(raw)
        except Exception as e:
            raise ConfigError(f"config: JSON non valido in {p}: {e}") from e
        if not isinstance(obj, dict):
            raise ConfigError(f"config: il JSON in {p} deve essere un oggetto")
        return obj

    try:
        obj = json.loads(s)
    except Exception as e:
        raise ConfigError(f"config: JSON inline non valido: {e}") from e
    if not isinstance(obj, dict):
        raise ConfigError("config: il JSON inline deve essere un oggetto")
    return obj


def _optional_bool(obj: dict[str, Any], key: str, default: bool) -> bool:
    if key not in obj:
        return default
    v = obj.get(key)
    if isinstance(v, bool):
        return v
    raise ConfigError(f"config: campo '{key}' deve essere booleano")


def _optional_max_bytes(obj: dict[str, Any]) -> int:
    if "max_output_bytes" not in obj:
        return DEFAULT_MAX_OUTPUT_BYTES
    v = obj.get("max_output_bytes")
    # bool is an int subclass
    if isinstance(v, bool) or not isinstance(v, int):
        raise ConfigError("config: campo 'max_output_bytes' deve essere un intero")
    if v < MIN_FRAME_BYTES:
        raise ConfigError(f"config: 'max_output_bytes' deve essere >= {MIN_FRAME_BYTES}")
    return v


@dataclass(frozen=True)
class HuffzipConfig:
    """Compress-side settings. Decompression needs none."""

    name: str = "default"
    max_output_bytes: int = DEFAULT_MAX_OUTPUT_BYTES
    verify: bool = False

    def with_overrides(
        self, *, max_output_bytes: int | None = None, verify: bool | None = None
    ) -> "HuffzipConfig":
        """CLI flags win over config values."""
        mob = self.max_output_bytes if max_output_bytes is None else int(max_output_bytes)
        if mob < MIN_FRAME_BYTES:
            raise ConfigError(f"max_output_bytes deve essere >= {MIN_FRAME_BYTES}")
        return HuffzipConfig(
            name=self.name,
            max_output_bytes=mob,
            verify=self.verify if verify is None else bool(verify),
        )


def load_config(config_arg: str) -> HuffzipConfig:
    """Load and validate a config.

    config_arg:
      - '@file.json'
      - inline JSON object
    """
    obj = _load_json_arg(config_arg)

    allowed = {"spec", "name", "max_output_bytes", "verify"}
    extra = sorted(set(obj.keys()) - allowed)
    if extra:
        raise ConfigError(f"config: chiavi non supportate: {', '.join(extra)}")

    spec_id = obj.get("spec")
    if spec_id != CONFIG_ID_V1:
        raise ConfigError(f"config: spec non supportata: {spec_id!r} (attesa {CONFIG_ID_V1!r})")

    name = obj.get("name")
    if name is None:
        name = "config"
    if not isinstance(name, str) or not name.strip():
        raise ConfigError("config: campo 'name' deve essere stringa")

    return HuffzipConfig(
        name=name.strip(),
        max_output_bytes=_optional_max_bytes(obj),
        verify=_optional_bool(obj, "verify", False),
    )
