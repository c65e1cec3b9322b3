"""Engine configuration loaded from engine.yaml.

The YAML mirrors EngineConfig's sections (indicators, regime, scoring, crash,
entry); any section or key left out keeps its default. No file means a fully
default configuration.
"""

import logging
from pathlib import Path

import yaml
from dotenv import load_dotenv

from signalcore.models.config import EngineConfig

logger = logging.getLogger(__name__)

_DEFAULT_PATH = Path(__file__).parent.parent / "engine.yaml"


def load_engine_config(path: Path | str | None = None) -> EngineConfig:
    """Load and validate the engine configuration.

    Raises:
        pydantic.ValidationError: If the file contains invalid values.
        ValueError: If the top level of the file is not a mapping.
    """
    config_path = Path(path) if path is not None else _DEFAULT_PATH

    # .env next to the config may point SIGNAL_* settings at this file
    load_dotenv(config_path.parent / ".env", override=False)

    if not config_path.exists():
        logger.info("No engine config found at %s, using defaults", config_path)
        return EngineConfig()

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"{config_path}: expected a mapping at the top level")

    config = EngineConfig(**raw)
    logger.info(
        "Loaded engine config from %s: sections=%s",
        config_path,
        sorted(raw),
    )
    return config
