from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any

from error_rate_monitor.models.config import MonitorConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConfigPaths:
    path: Path


class ConfigService:
    def __init__(self, paths: ConfigPaths | None = None) -> None:
        self.paths = paths or ConfigPaths(path=self.default_path())

    @staticmethod
    def default_path() -> Path:
        xdg = os.environ.get("XDG_CONFIG_HOME")
        if xdg:
            base = Path(xdg)
        else:
            base = Path.home() / ".config"
        return base / "error_rate_monitor" / "config.json"

    def load(self) -> dict[str, Any]:
        p = self.paths.path
        if not p.exists():
            return {}
        try:
            with open(p, "r", encoding="utf-8") as f:
                obj = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("ignoring unreadable config %s: %s", p, e)
            return {}
        if not isinstance(obj, dict):
            logger.warning("ignoring config %s: top level is not an object", p)
            return {}
        return obj

    def load_config(self, base: MonitorConfig | None = None) -> MonitorConfig:
        cfg = base or MonitorConfig()
        overrides = self.load()
        markers = overrides.get("markers")
        if markers is not None and not isinstance(markers, list):
            logger.warning("ignoring config key 'markers': expected a list")
            overrides = {k: v for k, v in overrides.items() if k != "markers"}
        return cfg.merged(overrides)

    def save(self, cfg: dict[str, Any] | MonitorConfig) -> None:
        if isinstance(cfg, MonitorConfig):
            data = asdict(cfg)
            data["markers"] = list(cfg.markers)
        else:
            data = cfg
        p = self.paths.path
        p.parent.mkdir(parents=True, exist_ok=True)
        tmp = p.with_suffix(p.suffix + ".tmp")
        with open(tmp, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False, indent=2, sort_keys=True)
        tmp.replace(p)
