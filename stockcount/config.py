from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path

import streamlit as st

from stockcount.models import DEFAULT_LOCATION

CONFIG_FILE_NAME = "settings.json"
ENV_DATA_DIR = "STOCK_COUNT_DATA_DIR"
SESSION_KEY_DATA_DIR = "stock_count_data_dir"


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    db_path: Path
    log_path: Path
    default_location: str = DEFAULT_LOCATION
    page_size: int = 50


def _default_data_dir() -> Path:
    return Path.home() / ".stock_counting_demo"


def _load_persisted_settings(data_dir: Path) -> dict:
    cfg = data_dir / CONFIG_FILE_NAME
    if cfg.exists():
        try:
            return json.loads(cfg.read_text(encoding="utf-8"))
        except (OSError, ValueError):
            return {}
    return {}


def persist_data_dir(data_dir_str: str) -> None:
    data_dir = Path(data_dir_str).expanduser().resolve()
    data_dir.mkdir(parents=True, exist_ok=True)

    # Written to the default folder so the choice survives restarts
    default_dir = _default_data_dir()
    default_dir.mkdir(parents=True, exist_ok=True)
    payload = _load_persisted_settings(default_dir)
    payload["data_dir"] = str(data_dir)
    (default_dir / CONFIG_FILE_NAME).write_text(json.dumps(payload, indent=2), encoding="utf-8")

    # Update session for immediate effect
    st.session_state[SESSION_KEY_DATA_DIR] = str(data_dir)


def resolve_settings(session_dir: str | None = None, env: dict | None = None) -> Settings:
    # Priority order:
    # 1) Session state (set via Data Management page)
    # 2) Environment variable
    # 3) Persisted settings in default folder
    # 4) Default folder
    env = os.environ if env is None else env
    persisted: dict = {}
    if session_dir:
        data_dir = Path(session_dir).expanduser().resolve()
    elif env.get(ENV_DATA_DIR):
        data_dir = Path(env[ENV_DATA_DIR]).expanduser().resolve()
    else:
        default_dir = _default_data_dir()
        persisted = _load_persisted_settings(default_dir)
        data_dir = Path(persisted.get("data_dir", default_dir)).expanduser().resolve()

    data_dir.mkdir(parents=True, exist_ok=True)
    return Settings(
        data_dir=data_dir,
        db_path=data_dir / "app.db",
        log_path=data_dir / "logs" / "stock_counting.log",
        default_location=str(persisted.get("default_location", DEFAULT_LOCATION)),
        page_size=int(persisted.get("page_size", 50)),
    )


@st.cache_resource
def get_settings() -> Settings:
    return resolve_settings(st.session_state.get(SESSION_KEY_DATA_DIR))
