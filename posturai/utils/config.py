from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml
from loguru import logger

DEFAULT_RUNTIME_CONFIG = Path("configs/runtime.yaml")


@dataclass
class RuntimeConfig:
    engine: Dict[str, Any] = field(default_factory=dict)
    logging: Dict[str, Any] = field(default_factory=dict)
    server: Dict[str, Any] = field(default_factory=dict)

    @property
    def assumed_fps(self) -> float:
        return float(self.engine.get("assumed_fps", 10))

    @property
    def log_level(self) -> str:
        return str(self.logging.get("level", "INFO")).upper()


def load_runtime_config(path: str | Path = DEFAULT_RUNTIME_CONFIG) -> RuntimeConfig:
    config_path = Path(path)
    if not config_path.is_file():
        logger.debug("Runtime config {} not found; using defaults", config_path)
        return RuntimeConfig()
    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    return RuntimeConfig(
        engine=data.get("engine", {}),
        logging=data.get("logging", {}),
        server=data.get("server", {}),
    )
