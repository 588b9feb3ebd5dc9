from __future__ import annotations

import logging
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .models import OpeningType, PricingRow, Resolution, ResolutionStatus

LOGGER = logging.getLogger(__name__)


class PriceTable:
    """
    Read-only index of base pricing rows for one carrier snapshot.

    Keys:
      - "modelId-planGroup-openingType" for tier-specific rows
      - "modelId-openingType" for the less-specific fallback

    A reload builds a new table; rows are never mutated in place.
    """

    def __init__(
        self,
        by_tier: Dict[str, PricingRow],
        by_model: Dict[str, PricingRow],
        rows: Tuple[PricingRow, ...],
    ) -> None:
        self._by_tier = by_tier
        self._by_model = by_model
        self._rows = rows

    @staticmethod
    def key(model_id: str, opening_type: str, plan_group: Optional[str] = None) -> str:
        if plan_group:
            return f"{model_id}-{plan_group}-{opening_type}"
        return f"{model_id}-{opening_type}"

    @classmethod
    def from_rows(cls, rows: Iterable[PricingRow]) -> "PriceTable":
        by_tier: Dict[str, PricingRow] = {}
        by_model: Dict[str, PricingRow] = {}
        kept: List[PricingRow] = []
        # Plan-less rows go first so they own the fallback key.
        ordered = sorted(rows, key=lambda row: bool(row.plan_group))
        for row in ordered:
            kept.append(row)
            opening = row.stored_opening
            if row.plan_group:
                tier_key = cls.key(row.model_id, opening, row.plan_group)
                if tier_key in by_tier:
                    LOGGER.warning("duplicate pricing row replaced: %s", tier_key)
                by_tier[tier_key] = row
            by_model.setdefault(cls.key(row.model_id, opening), row)
        return cls(by_tier=by_tier, by_model=by_model, rows=tuple(kept))

    def __len__(self) -> int:
        return len(self._rows)

    def __iter__(self) -> Iterator[PricingRow]:
        return iter(self._rows)

    def get(self, key: str) -> Optional[PricingRow]:
        return self._by_tier.get(key) or self._by_model.get(key)

    def get_tier(self, key: str) -> Optional[PricingRow]:
        return self._by_tier.get(key)

    def get_model(self, key: str) -> Optional[PricingRow]:
        return self._by_model.get(key)

    def model_ids(self) -> List[str]:
        seen: Dict[str, None] = {}
        for row in self._rows:
            seen.setdefault(row.model_id, None)
        return list(seen)


def _opening_labels(opening_type: OpeningType) -> List[str]:
    return [opening_type.value, *opening_type.aliases]


class PriceResolver:
    def __init__(self, table: Optional[PriceTable]) -> None:
        self._table = table

    def resolve(
        self, model_id: str, plan_group: str, opening_type: OpeningType
    ) -> Resolution:
        if self._table is None:
            return Resolution.loading()

        model_id = (model_id or "").strip()
        plan_group = (plan_group or "").strip()
        primary, *aliases = _opening_labels(opening_type)

        if plan_group:
            row = self._table.get_tier(PriceTable.key(model_id, primary, plan_group))
            for alias in aliases:
                if row is not None:
                    break
                row = self._table.get_tier(PriceTable.key(model_id, alias, plan_group))
            if row is not None:
                return Resolution(status=ResolutionStatus.FOUND, row=row)

        for label in (primary, *aliases):
            row = self._table.get_model(PriceTable.key(model_id, label))
            if row is not None:
                return Resolution(status=ResolutionStatus.FOUND, row=row)

        LOGGER.warning(
            "no pricing row for %s", PriceTable.key(model_id, primary, plan_group)
        )
        return Resolution.not_found()
