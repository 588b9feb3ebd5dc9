from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Set

import yaml

from .config import PricingConfig
from .facade import PricingFacade
from .models import PolicySettings
from .schema import (
    PricingValidationError,
    _as_list,
    _as_mapping,
    _as_str,
    normalize_policy_settings,
    normalize_price_rows,
)
from .table import PriceTable

LOGGER = logging.getLogger(__name__)


class SnapshotNotFoundError(PricingValidationError):
    pass


@dataclass(frozen=True)
class PricingSnapshot:
    carrier: str
    table: PriceTable
    settings: PolicySettings
    loaded_at: float


def _carrier_key(carrier: str) -> str:
    key = _as_str(carrier).upper()
    if not key or not key.isalnum():
        raise PricingValidationError(f"carrier '{carrier}' is not valid")
    return key


def build_snapshot(
    carrier: str,
    rows: Iterable[Any],
    policy: Any,
    *,
    default_margin: int = 50000,
) -> PricingSnapshot:
    key = _carrier_key(carrier)
    return PricingSnapshot(
        carrier=key,
        table=PriceTable.from_rows(normalize_price_rows(rows)),
        settings=normalize_policy_settings(
            policy, carrier=key, default_margin=default_margin
        ),
        loaded_at=time.time(),
    )


class PricingSession:
    """
    Holds the current pricing snapshot per carrier.

    Snapshots are immutable. Loading builds a complete new snapshot and then
    swaps the reference, so a calculation in flight keeps the snapshot it
    started with. A failed load leaves the previous snapshot in place.
    """

    def __init__(self, config: Optional[PricingConfig] = None) -> None:
        self._config = config or PricingConfig.from_env()
        self._snapshots: Dict[str, PricingSnapshot] = {}
        # Carriers whose snapshot file was absent; cleared by an explicit load.
        self._missing: Set[str] = set()
        self._lock = threading.Lock()

    @property
    def config(self) -> PricingConfig:
        return self._config

    def snapshot_path(self, carrier: str) -> Path:
        return self._config.data_dir / f"{_carrier_key(carrier)}.yml"

    def get(self, carrier: str) -> Optional[PricingSnapshot]:
        return self._snapshots.get(_carrier_key(carrier))

    def carriers(self) -> List[str]:
        return sorted(self._snapshots)

    def install(self, carrier: str, rows: Iterable[Any], policy: Any) -> PricingSnapshot:
        snapshot = build_snapshot(
            carrier, rows, policy, default_margin=self._config.default_margin
        )
        with self._lock:
            self._snapshots[snapshot.carrier] = snapshot
            self._missing.discard(snapshot.carrier)
        LOGGER.info(
            "pricing snapshot installed: carrier=%s rows=%d policies=%d",
            snapshot.carrier,
            len(snapshot.table),
            len(snapshot.settings.special_policies),
        )
        return snapshot

    def load(self, carrier: str) -> PricingSnapshot:
        path = self.snapshot_path(carrier)
        if not path.is_file():
            raise SnapshotNotFoundError(f"pricing snapshot missing: {path}")
        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            LOGGER.warning("pricing snapshot %s not readable: %s", path, exc)
            raise PricingValidationError(f"pricing snapshot unreadable: {exc}") from exc
        try:
            doc = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            LOGGER.warning("pricing snapshot %s not loaded: %s", path, exc)
            raise PricingValidationError(f"pricing snapshot invalid YAML: {exc}") from exc
        if not isinstance(doc, dict):
            raise PricingValidationError("pricing snapshot root must be a mapping")
        return self.install(carrier, _as_list(doc.get("rows")), _as_mapping(doc.get("policy")))

    def ensure(self, carrier: str) -> Optional[PricingSnapshot]:
        snapshot = self.get(carrier)
        if snapshot is not None or not self._config.autoload:
            return snapshot
        key = _carrier_key(carrier)
        if key in self._missing:
            return None
        try:
            return self.load(carrier)
        except SnapshotNotFoundError as exc:
            with self._lock:
                self._missing.add(key)
            LOGGER.warning("pricing snapshot for %s unavailable: %s", carrier, exc)
            return None
        except PricingValidationError as exc:
            LOGGER.warning("pricing snapshot for %s unavailable: %s", carrier, exc)
            return None

    def facade(self, carrier: str) -> PricingFacade:
        snapshot = self.ensure(carrier)
        if snapshot is None:
            return PricingFacade(None, None, self._config)
        return PricingFacade(snapshot.table, snapshot.settings, self._config)
