import os
from pathlib import Path

import yaml

from doc_chat.logger import GLOBAL_LOGGER as log

# sections read by wire_services(); anything absent falls back to code defaults
EXPECTED_SECTIONS = (
    "upload",
    "chunking",
    "embedding_model",
    "vector_store",
    "retriever",
    "history",
    "chat",
    "llm",
)


def _project_root() -> Path:
    # doc_chat/utils/config_loader.py -> project root
    return Path(__file__).resolve().parents[2]


def resolve_config_path(config_path: str | None = None) -> Path:
    """Explicit argument, then CONFIG_PATH, then the bundled doc_chat/config/config.yaml."""
    raw = config_path or os.getenv("CONFIG_PATH")
    path = Path(raw) if raw else _project_root() / "doc_chat" / "config" / "config.yaml"
    if not path.is_absolute():
        path = _project_root() / path
    return path


def load_config(config_path: str | None = None) -> dict:
    path = resolve_config_path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found at {path}")

    with open(path, "r", encoding="utf-8") as file:
        config = yaml.safe_load(file) or {}

    if not isinstance(config, dict):
        raise ValueError(f"Config file {path} must contain a mapping at the top level")

    missing = [s for s in EXPECTED_SECTIONS if s not in config]
    if missing:
        log.warning("Config sections missing, defaults apply | path=%s | missing=%s", path, missing)
    return config
