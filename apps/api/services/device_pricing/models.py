from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Tuple

FLIP_FOLD_KEYWORDS: Tuple[str, ...] = ("flip", "fold", "플립", "폴드")


class OpeningType(str, Enum):
    NEW_ACTIVATION = "010신규"
    NUMBER_PORTABILITY = "MNP"
    DEVICE_CHANGE = "기변"

    @property
    def code(self) -> str:
        return _OPENING_CODES[self]

    @property
    def label(self) -> str:
        return _OPENING_LABELS[self]

    @property
    def aliases(self) -> Tuple[str, ...]:
        return _OPENING_ALIASES.get(self, ())


_OPENING_CODES = {
    OpeningType.NEW_ACTIVATION: "NEW",
    OpeningType.NUMBER_PORTABILITY: "MNP",
    OpeningType.DEVICE_CHANGE: "CHANGE",
}

_OPENING_LABELS = {
    OpeningType.NEW_ACTIVATION: "NewActivation",
    OpeningType.NUMBER_PORTABILITY: "NumberPortability",
    OpeningType.DEVICE_CHANGE: "DeviceChange",
}

# Labels older price sheets stored instead of the current value.
_OPENING_ALIASES = {
    OpeningType.NUMBER_PORTABILITY: ("번호이동",),
}

_ALL_TYPES_KEYWORDS = ("전유형", "전체", "모두")


def safe_lower(s: str) -> str:
    return (s or "").strip().lower()


def parse_opening_type(raw: object) -> Optional[OpeningType]:
    if isinstance(raw, OpeningType):
        return raw
    text = str(raw or "").strip()
    if not text:
        return None
    for opening in OpeningType:
        known = {opening.value, opening.code, opening.name, opening.label}
        if text in known or text in opening.aliases:
            return opening
    parsed = parse_opening_types(text)
    return parsed[0] if len(parsed) == 1 else None


def parse_opening_types(raw: object) -> List[OpeningType]:
    """Free-text opening type label to the list of types it names.

    Returns an empty list when nothing is recognised.
    """
    text = safe_lower(str(raw or "")).replace(" ", "")
    if not text:
        return []
    if any(keyword in text for keyword in _ALL_TYPES_KEYWORDS):
        return list(OpeningType)

    types: List[OpeningType] = []
    if "010" in text or "신규" in text or text == "new":
        types.append(OpeningType.NEW_ACTIVATION)
    if "mnp" in text or "번호이동" in text:
        types.append(OpeningType.NUMBER_PORTABILITY)
    if "기변" in text or "기기변경" in text or text == "change":
        types.append(OpeningType.DEVICE_CHANGE)
    return types


def is_flip_fold_name(name: str) -> bool:
    lowered = safe_lower(name)
    return any(keyword in lowered for keyword in FLIP_FOLD_KEYWORDS)


class PolicyType(str, Enum):
    GENERAL = "general"
    CONDITIONAL = "conditional"


class ResolutionStatus(str, Enum):
    FOUND = "found"
    NOT_FOUND = "notFound"
    LOADING = "loading"


@dataclass(frozen=True)
class PricingRow:
    model_id: str
    plan_group: str
    opening_type: OpeningType
    factory_price: int = 0
    carrier_subsidy: int = 0
    store_rebate_with_addon: int = 0
    store_rebate_without_addon: int = 0
    # Label as stored by the data source; may be a legacy alias.
    opening_label: str = ""

    @property
    def stored_opening(self) -> str:
        return self.opening_label or self.opening_type.value


@dataclass(frozen=True)
class Addon:
    name: str
    monthly_fee: int = 0
    incentive_amount: int = 0
    deduction_amount: int = 0
    description: str = ""
    url: str = ""

    @property
    def is_required(self) -> bool:
        return self.deduction_amount > 0


@dataclass(frozen=True)
class InsuranceOffer:
    name: str
    min_price: int = 0
    max_price: int = 0
    fee: int = 0
    incentive_amount: int = 0
    deduction_amount: int = 0
    description: str = ""
    url: str = ""

    @property
    def is_flip_fold(self) -> bool:
        return is_flip_fold_name(self.name)

    def covers(self, price: int) -> bool:
        # max_price 0 is an open upper bound.
        if self.max_price and self.min_price > self.max_price:
            return False
        if price < self.min_price:
            return False
        return not self.max_price or price <= self.max_price


@dataclass(frozen=True)
class Condition:
    models: Tuple[str, ...] = ()
    opening_types: Tuple[OpeningType, ...] = ()
    plan_groups: Tuple[str, ...] = ()
    contract_type: str = ""
    min_store_support: Optional[int] = None
    amount: Optional[int] = None


@dataclass(frozen=True)
class SpecialPolicy:
    name: str
    policy_type: PolicyType = PolicyType.GENERAL
    amount: int = 0
    is_active: bool = True
    conditions: Tuple[Condition, ...] = ()


@dataclass(frozen=True)
class PolicySettings:
    carrier: str
    base_margin: int = 0
    addons: Tuple[Addon, ...] = ()
    insurances: Tuple[InsuranceOffer, ...] = ()
    special_policies: Tuple[SpecialPolicy, ...] = ()

    @property
    def active_policies(self) -> Tuple[SpecialPolicy, ...]:
        return tuple(p for p in self.special_policies if p.is_active)


@dataclass(frozen=True)
class PricingContext:
    model_id: str
    carrier: str
    plan_group: str
    opening_type: OpeningType
    display_name: str = ""
    factory_price: int = 0
    contract_type: str = ""
    selected_addon_names: Tuple[str, ...] = ()
    store_support: Optional[int] = None

    def with_store_support(self, store_support: Optional[int]) -> "PricingContext":
        return replace(self, store_support=store_support)

    def with_opening_type(self, opening_type: OpeningType) -> "PricingContext":
        return replace(self, opening_type=opening_type, store_support=None)


@dataclass(frozen=True)
class Resolution:
    status: ResolutionStatus
    row: Optional[PricingRow] = None

    @property
    def found(self) -> bool:
        return self.status is ResolutionStatus.FOUND and self.row is not None

    @staticmethod
    def loading() -> "Resolution":
        return Resolution(status=ResolutionStatus.LOADING)

    @staticmethod
    def not_found() -> "Resolution":
        return Resolution(status=ResolutionStatus.NOT_FOUND)


@dataclass(frozen=True)
class RequiredAddons:
    names: Tuple[str, ...] = ()
    total_incentive: int = 0
    total_deduction: int = 0
    insurance: Optional[InsuranceOffer] = None


@dataclass(frozen=True)
class SpecialAdjustment:
    total_addition: int = 0
    total_deduction: int = 0
    matched: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def signed_deduction(self) -> int:
        return -self.total_deduction
