from __future__ import annotations

import json
import logging
from typing import Any, Dict, Iterable, List, Optional, Tuple

from .models import (
    Addon,
    Condition,
    InsuranceOffer,
    OpeningType,
    PolicySettings,
    PolicyType,
    PricingRow,
    SpecialPolicy,
    parse_opening_type,
    parse_opening_types,
)

LOGGER = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "y", "yes", "on", "o"}


class PricingValidationError(ValueError):
    pass


def _as_mapping(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_list(value: Any) -> List[Any]:
    return value if isinstance(value, list) else []


def _as_str(value: Any) -> str:
    return str(value or "").strip()


def _as_bool(value: Any, default: bool = False) -> bool:
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return value
    return _as_str(value).lower() in _TRUTHY


def _pick(raw: Dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in raw and raw[key] is not None:
            return raw[key]
    return None


def _to_int(value: Any, *, field: str, signed: bool = False) -> int:
    if value is None or value == "":
        return 0
    if isinstance(value, str):
        value = value.replace(",", "").strip() or "0"
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError) as exc:
        raise PricingValidationError(f"{field} must be numeric") from exc
    if number < 0 and not signed:
        raise PricingValidationError(f"{field} must be >= 0")
    return number


def _str_tuple(value: Any) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = value.split(",")
    return tuple(_as_str(item) for item in _as_list(value) if _as_str(item))


def normalize_price_row(raw: Any, *, field: str = "row") -> PricingRow:
    row = _as_mapping(raw)
    model_id = _as_str(_pick(row, "modelId", "model_id", "model"))
    if not model_id:
        raise PricingValidationError(f"{field}.modelId is required")
    opening_raw = _pick(row, "openingType", "opening_type")
    opening_type = parse_opening_type(opening_raw)
    if opening_type is None:
        raise PricingValidationError(
            f"{field}.openingType '{_as_str(opening_raw)}' is not supported"
        )
    label = _as_str(opening_raw)
    if label not in (opening_type.value, *opening_type.aliases):
        label = opening_type.value
    return PricingRow(
        model_id=model_id,
        plan_group=_as_str(_pick(row, "planGroup", "plan_group")),
        opening_type=opening_type,
        factory_price=_to_int(
            _pick(row, "factoryPrice", "factory_price"), field=f"{field}.factoryPrice"
        ),
        carrier_subsidy=_to_int(
            _pick(row, "carrierSubsidy", "carrier_subsidy", "publicSupport"),
            field=f"{field}.carrierSubsidy",
        ),
        store_rebate_with_addon=_to_int(
            _pick(row, "storeRebateWithAddon", "store_rebate_with_addon"),
            field=f"{field}.storeRebateWithAddon",
            signed=True,
        ),
        store_rebate_without_addon=_to_int(
            _pick(row, "storeRebateWithoutAddon", "store_rebate_without_addon"),
            field=f"{field}.storeRebateWithoutAddon",
            signed=True,
        ),
        opening_label=label,
    )


def normalize_price_rows(raw_rows: Iterable[Any]) -> List[PricingRow]:
    rows: List[PricingRow] = []
    for index, raw in enumerate(raw_rows or []):
        try:
            rows.append(normalize_price_row(raw, field=f"rows[{index}]"))
        except PricingValidationError as exc:
            LOGGER.warning("pricing row skipped: %s", exc)
    return rows


def _normalize_addon(raw: Dict[str, Any], *, field: str) -> Addon:
    name = _as_str(_pick(raw, "name", "serviceName"))
    if not name:
        raise PricingValidationError(f"{field}.name is required")
    return Addon(
        name=name,
        monthly_fee=_to_int(
            _pick(raw, "monthlyFee", "monthly_fee", "fee"), field=f"{field}.monthlyFee"
        ),
        incentive_amount=_to_int(
            _pick(raw, "incentiveAmount", "incentive_amount", "incentive"),
            field=f"{field}.incentiveAmount",
        ),
        deduction_amount=abs(
            _to_int(
                _pick(raw, "deductionAmount", "deduction_amount", "deduction"),
                field=f"{field}.deductionAmount",
                signed=True,
            )
        ),
        description=_as_str(raw.get("description")),
        url=_as_str(_pick(raw, "url", "officialUrl")),
    )


def _normalize_insurance(raw: Dict[str, Any], *, field: str) -> InsuranceOffer:
    name = _as_str(_pick(raw, "name", "productName"))
    if not name:
        raise PricingValidationError(f"{field}.name is required")
    return InsuranceOffer(
        name=name,
        min_price=_to_int(_pick(raw, "minPrice", "min_price"), field=f"{field}.minPrice"),
        max_price=_to_int(_pick(raw, "maxPrice", "max_price"), field=f"{field}.maxPrice"),
        fee=_to_int(_pick(raw, "fee", "monthlyFee", "monthly_fee"), field=f"{field}.fee"),
        incentive_amount=_to_int(
            _pick(raw, "incentiveAmount", "incentive_amount", "incentive"),
            field=f"{field}.incentiveAmount",
        ),
        deduction_amount=abs(
            _to_int(
                _pick(raw, "deductionAmount", "deduction_amount", "deduction"),
                field=f"{field}.deductionAmount",
                signed=True,
            )
        ),
        description=_as_str(raw.get("description")),
        url=_as_str(_pick(raw, "url", "officialUrl")),
    )


def _condition_items(raw: Any) -> List[Dict[str, Any]]:
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return []
        try:
            raw = json.loads(text)
        except ValueError:
            LOGGER.warning("special policy conditions ignored, invalid JSON: %s", text)
            return []
    if isinstance(raw, dict):
        return [raw]
    return [item for item in _as_list(raw) if isinstance(item, dict)]


def _normalize_condition(raw: Dict[str, Any], *, field: str) -> Condition:
    labels = _str_tuple(_pick(raw, "openingTypes", "opening_types"))
    opening_types: List[OpeningType] = []
    for label in labels:
        exact = parse_opening_type(label)
        for opening in [exact] if exact else parse_opening_types(label):
            if opening is not None and opening not in opening_types:
                opening_types.append(opening)
    if labels and not opening_types:
        raise PricingValidationError(f"{field}.openingTypes has no known opening type")

    min_support_raw = _pick(raw, "minStoreSupport", "min_store_support")
    amount_raw = _pick(raw, "amount")
    return Condition(
        models=_str_tuple(_pick(raw, "models", "modelIds")),
        opening_types=tuple(opening_types),
        plan_groups=_str_tuple(_pick(raw, "planGroups", "plan_groups")),
        contract_type=_as_str(_pick(raw, "contractType", "contract_type")),
        min_store_support=(
            None
            if min_support_raw in (None, "")
            else _to_int(min_support_raw, field=f"{field}.minStoreSupport")
        ),
        amount=(
            None
            if amount_raw in (None, "")
            else _to_int(amount_raw, field=f"{field}.amount", signed=True)
        ),
    )


def _normalize_special_policy(
    raw: Dict[str, Any], *, field: str
) -> Tuple[SpecialPolicy, ...]:
    name = _as_str(_pick(raw, "name", "policyName"))
    if not name:
        raise PricingValidationError(f"{field}.name is required")
    is_active = _as_bool(_pick(raw, "isActive", "is_active"), default=True)

    # Older sheets store an addition/deduction pair instead of a signed amount.
    # Each non-zero half becomes its own policy.
    if "amount" not in raw and ("addition" in raw or "deduction" in raw):
        addition = _to_int(raw.get("addition"), field=f"{field}.addition", signed=True)
        deduction = _to_int(raw.get("deduction"), field=f"{field}.deduction", signed=True)
        amounts = [amount for amount in (addition, -abs(deduction)) if amount] or [0]
        return tuple(
            SpecialPolicy(
                name=name,
                policy_type=PolicyType.GENERAL,
                amount=amount,
                is_active=is_active,
            )
            for amount in amounts
        )

    type_raw = _as_str(_pick(raw, "policyType", "policy_type", "type")).lower()
    conditions_raw = _pick(raw, "conditions", "condition")
    if type_raw in {"", PolicyType.GENERAL.value}:
        policy_type = (
            PolicyType.CONDITIONAL if type_raw == "" and conditions_raw else PolicyType.GENERAL
        )
    elif type_raw == PolicyType.CONDITIONAL.value:
        policy_type = PolicyType.CONDITIONAL
    else:
        raise PricingValidationError(f"{field}.policyType '{type_raw}' is not supported")

    conditions = tuple(
        _normalize_condition(item, field=f"{field}.conditions[{index}]")
        for index, item in enumerate(_condition_items(conditions_raw))
    )
    return (
        SpecialPolicy(
            name=name,
            policy_type=policy_type,
            amount=_to_int(raw.get("amount"), field=f"{field}.amount", signed=True),
            is_active=is_active,
            conditions=conditions,
        ),
    )


def _normalize_many(items: Any, normalizer, *, field: str) -> tuple:
    out = []
    for index, item in enumerate(_as_list(items)):
        try:
            out.append(normalizer(_as_mapping(item), field=f"{field}[{index}]"))
        except PricingValidationError as exc:
            LOGGER.warning("policy record skipped: %s", exc)
    return tuple(out)


def normalize_policy_settings(
    raw: Any, *, carrier: str, default_margin: int = 50000
) -> PolicySettings:
    """Build the typed per-carrier policy settings.

    Expected shape::

        margin:    {baseMargin: 50000}
        addon:     {list: [...]}
        insurance: {list: [...]}
        special:   {list: [...]}
    """
    doc = _as_mapping(raw)
    margin_raw: Optional[Any] = _pick(_as_mapping(doc.get("margin")), "baseMargin", "base_margin")
    base_margin = (
        default_margin
        if margin_raw in (None, "")
        else _to_int(margin_raw, field="margin.baseMargin")
    )
    return PolicySettings(
        carrier=_as_str(carrier).upper(),
        base_margin=base_margin,
        addons=_normalize_many(
            _as_mapping(doc.get("addon")).get("list"), _normalize_addon, field="addon.list"
        ),
        insurances=_normalize_many(
            _as_mapping(doc.get("insurance")).get("list"),
            _normalize_insurance,
            field="insurance.list",
        ),
        special_policies=tuple(
            policy
            for group in _normalize_many(
                _as_mapping(doc.get("special")).get("list"),
                _normalize_special_policy,
                field="special.list",
            )
            for policy in group
        ),
    )
