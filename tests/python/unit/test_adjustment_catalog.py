from __future__ import annotations

import unittest

from services.device_pricing.catalog import AdjustmentCatalog
from services.device_pricing.models import Addon, InsuranceOffer, PolicySettings


def _settings(**overrides) -> PolicySettings:
    values = dict(
        carrier="LG",
        base_margin=50000,
        addons=(
            Addon(name="유튜브 프리미엄", monthly_fee=13900, incentive_amount=20000, deduction_amount=30000),
            Addon(name="V컬러링", monthly_fee=3300, incentive_amount=5000),
        ),
        insurances=(
            InsuranceOffer(name="폰교체 패스 베이직", min_price=0, max_price=999999, fee=5900, incentive_amount=3000, deduction_amount=10000),
            InsuranceOffer(name="폰교체 패스 프리미엄", min_price=1000000, max_price=0, fee=8900, incentive_amount=4000, deduction_amount=15000),
            InsuranceOffer(name="폴드 전용 보험", min_price=1500000, max_price=2500000, fee=11900, deduction_amount=20000),
        ),
    )
    values.update(overrides)
    return PolicySettings(**values)


class TestAdjustmentCatalog(unittest.TestCase):
    def setUp(self) -> None:
        self.catalog = AdjustmentCatalog(_settings())

    def test_required_addons_include_matching_insurance(self) -> None:
        required = self.catalog.required_addons_for("Galaxy S24", 800000)

        self.assertEqual(required.names, ("유튜브 프리미엄", "폰교체 패스 베이직"))
        self.assertEqual(required.total_incentive, 23000)
        self.assertEqual(required.total_deduction, 40000)
        self.assertEqual(required.insurance.name, "폰교체 패스 베이직")

    def test_open_upper_bound_band(self) -> None:
        required = self.catalog.required_addons_for("Galaxy S24 Ultra", 1800000)
        self.assertEqual(required.insurance.name, "폰교체 패스 프리미엄")

    def test_zero_price_selects_no_insurance(self) -> None:
        required = self.catalog.required_addons_for("Galaxy S24", 0)
        self.assertIsNone(required.insurance)
        self.assertEqual(required.names, ("유튜브 프리미엄",))
        self.assertEqual(required.total_deduction, 30000)

    def test_flip_fold_device_uses_flip_offer_on_lg(self) -> None:
        offer = self.catalog.match_insurance("Galaxy Z Fold6", 2200000, "LG")
        self.assertEqual(offer.name, "폴드 전용 보험")

    def test_flip_fold_offer_outside_band_falls_back_to_regular(self) -> None:
        offer = self.catalog.match_insurance("갤럭시 Z 플립6", 1480000, "LG")
        self.assertEqual(offer.name, "폰교체 패스 프리미엄")

    def test_malformed_flip_fold_band_never_matches(self) -> None:
        catalog = AdjustmentCatalog(
            _settings(
                insurances=(
                    InsuranceOffer(name="Fold care", min_price=2000000, max_price=1000000),
                )
            )
        )
        self.assertIsNone(catalog.match_insurance("Galaxy Z Fold6", 1500000, "LG"))

    def test_flip_fold_device_on_other_carrier_uses_regular_band(self) -> None:
        offer = self.catalog.match_insurance("Galaxy Z Fold6", 2200000, "SK")
        self.assertEqual(offer.name, "폰교체 패스 프리미엄")

    def test_falls_back_to_any_covering_offer(self) -> None:
        catalog = AdjustmentCatalog(
            _settings(
                insurances=(
                    InsuranceOffer(name="기본 보험", min_price=0, max_price=1000000, fee=5000),
                    InsuranceOffer(name="Flip care", min_price=0, max_price=3000000, fee=9000),
                )
            )
        )
        offer = catalog.match_insurance("Galaxy S24 Ultra", 1500000, "SK")
        self.assertEqual(offer.name, "Flip care")

    def test_malformed_band_never_matches(self) -> None:
        catalog = AdjustmentCatalog(
            _settings(insurances=(InsuranceOffer(name="broken", min_price=900000, max_price=100000),))
        )
        self.assertIsNone(catalog.match_insurance("Galaxy S24", 500000, "LG"))

    def test_flip_fold_carrier_is_configurable(self) -> None:
        catalog = AdjustmentCatalog(_settings(), flip_fold_carrier="KT")
        self.assertEqual(
            catalog.match_insurance("Galaxy Z Fold6", 2200000, "KT").name, "폴드 전용 보험"
        )
        self.assertEqual(
            catalog.match_insurance("Galaxy Z Fold6", 2200000, "LG").name, "폰교체 패스 프리미엄"
        )

    def test_monthly_fee_and_incentive_for_selection(self) -> None:
        names = ["유튜브 프리미엄", "폰교체 패스 베이직", "unknown"]
        self.assertEqual(self.catalog.monthly_fee_for(names), 19800)
        self.assertEqual(self.catalog.incentive_for(["V컬러링", "unknown"]), 5000)


if __name__ == "__main__":
    unittest.main()
