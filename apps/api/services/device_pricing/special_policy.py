from __future__ import annotations

from typing import Iterable, List, Tuple

from .models import (
    Condition,
    PolicyType,
    PricingContext,
    SpecialAdjustment,
    SpecialPolicy,
)


def condition_matches(condition: Condition, context: PricingContext) -> bool:
    if condition.models and context.model_id not in condition.models:
        return False
    if condition.opening_types and context.opening_type not in condition.opening_types:
        return False
    if condition.plan_groups and context.plan_group not in condition.plan_groups:
        return False
    if condition.contract_type and condition.contract_type != context.contract_type:
        return False
    if condition.min_store_support is not None:
        # Gated conditions wait for the second pass.
        if context.store_support is None:
            return False
        if context.store_support < condition.min_store_support:
            return False
    return True


def matched_amounts(policy: SpecialPolicy, context: PricingContext) -> List[int]:
    if not policy.is_active:
        return []
    if policy.policy_type is PolicyType.GENERAL or not policy.conditions:
        return [policy.amount]
    return [
        policy.amount if condition.amount is None else condition.amount
        for condition in policy.conditions
        if condition_matches(condition, context)
    ]


class SpecialPolicyEngine:
    """
    Evaluates special policies against one pricing context.

    Call once with ``context.store_support`` unset to get an initial support
    estimate, then again with the estimate to resolve ``minStoreSupport``
    gated conditions.
    """

    def __init__(self, policies: Iterable[SpecialPolicy]) -> None:
        self._policies: Tuple[SpecialPolicy, ...] = tuple(policies)

    def evaluate(self, context: PricingContext) -> SpecialAdjustment:
        addition = 0
        deduction = 0
        matched: List[str] = []
        for policy in self._policies:
            amounts = matched_amounts(policy, context)
            for amount in amounts:
                if amount >= 0:
                    addition += amount
                else:
                    deduction += -amount
            if amounts:
                matched.append(policy.name)
        return SpecialAdjustment(
            total_addition=addition,
            total_deduction=deduction,
            matched=tuple(matched),
        )
