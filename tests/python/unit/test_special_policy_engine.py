from __future__ import annotations

import unittest

from services.device_pricing.models import (
    Condition,
    OpeningType,
    PolicyType,
    PricingContext,
    SpecialPolicy,
)
from services.device_pricing.schema import normalize_policy_settings
from services.device_pricing.special_policy import SpecialPolicyEngine


def _context(**overrides) -> PricingContext:
    values = dict(
        model_id="SM-S928N",
        carrier="LG",
        plan_group="115군",
        opening_type=OpeningType.NEW_ACTIVATION,
    )
    values.update(overrides)
    return PricingContext(**values)


def _policies(items: list) -> tuple:
    settings = normalize_policy_settings({"special": {"list": items}}, carrier="LG")
    return settings.special_policies


class TestSpecialPolicyEngine(unittest.TestCase):
    def test_new_activation_deduction_for_all_models(self) -> None:
        engine = SpecialPolicyEngine(
            _policies(
                [
                    {
                        "name": "신규 차감",
                        "policyType": "conditional",
                        "amount": -20000,
                        "conditions": '{"models": [], "openingTypes": ["NewActivation"]}',
                    }
                ]
            )
        )

        result = engine.evaluate(_context())
        self.assertEqual(result.total_deduction, 20000)
        self.assertEqual(result.signed_deduction, -20000)
        self.assertEqual(result.total_addition, 0)
        self.assertEqual(result.matched, ("신규 차감",))

        other = engine.evaluate(_context(opening_type=OpeningType.DEVICE_CHANGE))
        self.assertEqual(other.total_deduction, 0)
        self.assertEqual(other.matched, ())

    def test_general_policy_always_applies(self) -> None:
        engine = SpecialPolicyEngine(
            [
                SpecialPolicy(name="bonus", amount=10000),
                SpecialPolicy(name="penalty", amount=-3000),
            ]
        )
        result = engine.evaluate(_context(opening_type=OpeningType.DEVICE_CHANGE))
        self.assertEqual(result.total_addition, 10000)
        self.assertEqual(result.total_deduction, 3000)
        self.assertEqual(result.matched, ("bonus", "penalty"))

    def test_inactive_policy_contributes_nothing(self) -> None:
        engine = SpecialPolicyEngine([SpecialPolicy(name="off", amount=10000, is_active=False)])
        result = engine.evaluate(_context())
        self.assertEqual(result.total_addition, 0)
        self.assertEqual(result.matched, ())

    def test_condition_amount_overrides_policy_amount(self) -> None:
        engine = SpecialPolicyEngine(
            [
                SpecialPolicy(
                    name="tiered",
                    policy_type=PolicyType.CONDITIONAL,
                    amount=1000,
                    conditions=(
                        Condition(plan_groups=("115군",), amount=7000),
                        Condition(models=("SM-S928N",)),
                        Condition(models=("SM-F741N",), amount=50000),
                    ),
                )
            ]
        )
        result = engine.evaluate(_context())
        self.assertEqual(result.total_addition, 8000)
        self.assertEqual(result.matched, ("tiered",))

    def test_min_store_support_waits_for_estimate(self) -> None:
        engine = SpecialPolicyEngine(
            [
                SpecialPolicy(
                    name="high support bonus",
                    policy_type=PolicyType.CONDITIONAL,
                    amount=5000,
                    conditions=(Condition(min_store_support=100000),),
                )
            ]
        )
        self.assertEqual(engine.evaluate(_context()).total_addition, 0)
        self.assertEqual(
            engine.evaluate(_context(store_support=99990)).total_addition, 0
        )
        self.assertEqual(
            engine.evaluate(_context(store_support=100000)).total_addition, 5000
        )

    def test_contract_type_condition(self) -> None:
        engine = SpecialPolicyEngine(
            [
                SpecialPolicy(
                    name="selected only",
                    policy_type=PolicyType.CONDITIONAL,
                    amount=4000,
                    conditions=(Condition(contract_type="selected"),),
                )
            ]
        )
        self.assertEqual(engine.evaluate(_context()).total_addition, 0)
        self.assertEqual(
            engine.evaluate(_context(contract_type="selected")).total_addition, 4000
        )


class TestSpecialPolicyNormalization(unittest.TestCase):
    def test_legacy_addition_deduction_pair_splits(self) -> None:
        policies = _policies([{"name": "legacy", "addition": 10000, "deduction": 4000}])
        self.assertEqual([p.name for p in policies], ["legacy", "legacy"])
        self.assertEqual([p.amount for p in policies], [10000, -4000])
        self.assertTrue(all(p.policy_type is PolicyType.GENERAL for p in policies))

        engine = SpecialPolicyEngine(policies)
        result = engine.evaluate(_context())
        self.assertEqual(result.total_addition, 10000)
        self.assertEqual(result.total_deduction, 4000)

    def test_legacy_single_sided_policy(self) -> None:
        (addition,) = _policies([{"name": "bonus", "addition": 5000, "deduction": 0}])
        self.assertEqual(addition.amount, 5000)
        (empty,) = _policies([{"name": "empty", "addition": 0}])
        self.assertEqual(empty.amount, 0)

    def test_all_types_label_expands(self) -> None:
        (policy,) = _policies(
            [{"name": "all", "amount": 1000, "conditions": [{"openingTypes": ["전유형"]}]}]
        )
        self.assertIs(policy.policy_type, PolicyType.CONDITIONAL)
        self.assertEqual(policy.conditions[0].opening_types, tuple(OpeningType))

    def test_unknown_records_are_skipped(self) -> None:
        with self.assertLogs("services.device_pricing.schema", level="WARNING"):
            policies = _policies(
                [
                    {"name": "bad type", "policyType": "bonus", "amount": 1},
                    {"name": "bad opening", "amount": 1, "conditions": [{"openingTypes": ["유심"]}]},
                    {"name": "", "amount": 1},
                    {"name": "broken json", "policyType": "conditional", "amount": 2, "conditions": "{oops"},
                ]
            )
        self.assertEqual([p.name for p in policies], ["broken json"])
        self.assertEqual(policies[0].conditions, ())


if __name__ == "__main__":
    unittest.main()
