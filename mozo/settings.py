from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from modules.la_cuenta.core.normalize import clamp_tip_percentage, clamp_vat_refund

ROOT_DIR = Path(__file__).resolve().parents[1]

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _env_text(name: str, default: str) -> str:
    raw = os.getenv(name)
    if raw is None:
        return default
    raw = raw.strip()
    return raw or default


@dataclass(frozen=True)
class Settings:
    log_level: str
    default_tip_percent: str
    default_vat_refund: str


def get_settings() -> Settings:
    # Defaults go through the same clamps as user input; garbage falls back.
    tip = clamp_tip_percentage(_env_text("MOZO_DEFAULT_TIP_PERCENT", "10")) or "10"
    vat = clamp_vat_refund(_env_text("MOZO_DEFAULT_VAT_REFUND", "9")) or "9"
    return Settings(
        log_level=_env_text("MOZO_LOG_LEVEL", "INFO").upper(),
        default_tip_percent=tip,
        default_vat_refund=vat,
    )


def shared_templates_dir(root_dir: Path = ROOT_DIR) -> Path:
    env_path = os.getenv("MOZO_SHARED_TEMPLATES")
    if env_path:
        return Path(env_path)
    return root_dir / "mozo" / "templates"


def configure_logging(level: str | None = None) -> None:
    name = (level or get_settings().log_level).upper()
    numeric = logging.getLevelName(name)
    if not isinstance(numeric, int):
        numeric = logging.INFO
    logging.basicConfig(format=_LOG_FORMAT, level=numeric)
    logging.getLogger("mozo").setLevel(numeric)
    logging.getLogger("modules").setLevel(numeric)
