from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def env_str(name: str, default: str) -> str:
    return (os.getenv(name) or "").strip() or default


@dataclass(frozen=True)
class PricingConfig:
    data_dir: Path
    default_margin: int = 50000
    flip_fold_carrier: str = "LG"
    installment_months: int = 24
    autoload: bool = True

    @staticmethod
    def from_env() -> "PricingConfig":
        return PricingConfig(
            data_dir=Path(env_str("PRICING_DATA_DIR", "./data/pricing")),
            default_margin=env_int("PRICING_DEFAULT_MARGIN", 50000),
            flip_fold_carrier=env_str("PRICING_FLIP_FOLD_CARRIER", "LG").upper(),
            installment_months=env_int("PRICING_INSTALLMENT_MONTHS", 24),
            autoload=env_bool("PRICING_AUTOLOAD", True),
        )
