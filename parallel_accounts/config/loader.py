"""Configuration loading helpers for parallel-accounts."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from .models import GlobalConfig

CONFIG_EXTENSIONS = (".yaml", ".yml", ".json")
GLOBAL_CONFIG_FILENAME = "config.yaml"
HOME_ENV_VAR = "PARALLEL_ACCOUNTS_HOME"


def _read_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix in (".yaml", ".yml"):
        data = yaml.safe_load(text) or {}
    else:
        data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file must contain a mapping: {path}")
    return data


def _write_file(path: Path, payload: dict) -> None:
    with path.open("w", encoding="utf-8") as stream:
        if path.suffix in (".yaml", ".yml"):
            yaml.safe_dump(payload, stream, allow_unicode=True, sort_keys=False)
        else:
            json.dump(payload, stream, indent=2, ensure_ascii=False)


def _set_dotted(payload: dict[str, Any], dotted_key: str, value: Any) -> None:
    parts = dotted_key.split(".")
    node = payload
    for part in parts[:-1]:
        child = node.get(part)
        if not isinstance(child, dict):
            raise KeyError(dotted_key)
        node = child
    if parts[-1] not in node:
        raise KeyError(dotted_key)
    node[parts[-1]] = value


@dataclass(slots=True)
class ConfigLocator:
    """Resolve important paths from project root."""

    project_root: Path | None = None
    data_dir: Path | None = None
    logs_dir: Path | None = None

    def __post_init__(self) -> None:
        env_root = os.environ.get(HOME_ENV_VAR)
        if env_root:
            root = Path(env_root).expanduser().resolve()
        else:
            root = (self.project_root or Path(__file__).resolve().parents[2]).resolve()
        self.project_root = root
        self.data_dir = (root / "data").resolve()
        self.logs_dir = (root / "logs").resolve()
        self.ensure_directories()

    def ensure_directories(self) -> None:
        for directory in (self.data_dir, self.logs_dir):
            directory.mkdir(parents=True, exist_ok=True)

    def global_config_path(self) -> Path:
        return self.data_dir / GLOBAL_CONFIG_FILENAME


class ConfigRepository:
    """Repository encapsulating config IO and schema validation."""

    def __init__(self, locator: ConfigLocator | None = None) -> None:
        self.locator = locator or ConfigLocator()
        self._global_cache: GlobalConfig | None = None

    def load_global_config(self) -> GlobalConfig:
        if self._global_cache is not None:
            return self._global_cache
        path = self.locator.global_config_path()
        if path.exists():
            payload = _read_file(path)
            global_cfg = GlobalConfig.model_validate(payload)
        else:
            global_cfg = GlobalConfig()
            self.save_global_config(global_cfg)
        self._global_cache = global_cfg
        return global_cfg

    def save_global_config(self, config: GlobalConfig) -> None:
        path = self.locator.global_config_path()
        payload = config.model_dump(mode="json")
        _write_file(path, payload)
        self._global_cache = config

    def set_value(self, dotted_key: str, raw_value: str) -> GlobalConfig:
        """Update one dotted key (``pipeline.result_count``) and persist it.

        The raw string is parsed as YAML so ``10``, ``null`` and ``true`` keep
        their types. Unknown keys raise ``KeyError``; invalid values raise
        pydantic's ``ValidationError`` and leave the file untouched.
        """

        payload = self.load_global_config().model_dump(mode="json")
        _set_dotted(payload, dotted_key, yaml.safe_load(raw_value))
        updated = GlobalConfig.model_validate(payload)
        self.save_global_config(updated)
        return updated

    @staticmethod
    def apply_overrides(
        config: GlobalConfig,
        *,
        base_url: str | None = None,
        result_count: int | None = None,
        max_detail_workers: int | None = None,
        run_timeout: float | None = None,
    ) -> GlobalConfig:
        """Return a validated copy with command-line overrides applied."""

        payload = config.model_dump(mode="json")
        if base_url is not None:
            payload["endpoint"]["base_url"] = base_url
        if result_count is not None:
            payload["pipeline"]["result_count"] = result_count
        if max_detail_workers is not None:
            payload["pipeline"]["max_detail_workers"] = max_detail_workers
        if run_timeout is not None:
            payload["pipeline"]["run_timeout"] = run_timeout
        return GlobalConfig.model_validate(payload)

    def dump_yaml(self) -> str:
        payload = self.load_global_config().model_dump(mode="json")
        return yaml.safe_dump(payload, allow_unicode=True, sort_keys=False)


__all__ = ["ConfigLocator", "ConfigRepository", "CONFIG_EXTENSIONS", "HOME_ENV_VAR"]
