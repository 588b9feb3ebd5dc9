from __future__ import annotations

from typing import Iterable, List, Optional, Sequence

from .models import (
    InsuranceOffer,
    PolicySettings,
    RequiredAddons,
    is_flip_fold_name,
    safe_lower,
)


def _first_covering(
    offers: Sequence[InsuranceOffer], price: int
) -> Optional[InsuranceOffer]:
    for offer in offers:
        if offer.covers(price):
            return offer
    return None


class AdjustmentCatalog:
    """
    Addon and insurance offerings configured for one carrier.

    Addons with a deduction are required by policy: a sale without them
    lowers the store rebate. At most one insurance offer joins them, picked
    by the device's factory price band.
    """

    def __init__(self, settings: PolicySettings, *, flip_fold_carrier: str = "LG") -> None:
        self._settings = settings
        self._flip_fold_carrier = safe_lower(flip_fold_carrier)

    def match_insurance(
        self, display_name: str, factory_price: int, carrier: str
    ) -> Optional[InsuranceOffer]:
        if not factory_price or factory_price <= 0:
            return None

        offers = list(self._settings.insurances)
        flip_offers = [o for o in offers if o.is_flip_fold]
        if (
            flip_offers
            and is_flip_fold_name(display_name)
            and safe_lower(carrier) == self._flip_fold_carrier
        ):
            offer = _first_covering(flip_offers, factory_price)
            if offer is not None:
                return offer

        regular = [o for o in offers if not o.is_flip_fold]
        return _first_covering(regular, factory_price) or _first_covering(
            offers, factory_price
        )

    def required_addons_for(
        self, display_name: str, factory_price: int, carrier: Optional[str] = None
    ) -> RequiredAddons:
        carrier = carrier or self._settings.carrier
        required = [addon for addon in self._settings.addons if addon.is_required]
        names: List[str] = [addon.name for addon in required]
        total_incentive = sum(addon.incentive_amount for addon in required)
        total_deduction = sum(addon.deduction_amount for addon in required)

        insurance = self.match_insurance(display_name, factory_price, carrier)
        if insurance is not None:
            names.append(insurance.name)
            total_incentive += insurance.incentive_amount
            total_deduction += insurance.deduction_amount

        return RequiredAddons(
            names=tuple(names),
            total_incentive=total_incentive,
            total_deduction=total_deduction,
            insurance=insurance,
        )

    def monthly_fee_for(self, names: Iterable[str]) -> int:
        fees = {addon.name: addon.monthly_fee for addon in self._settings.addons}
        for offer in self._settings.insurances:
            fees.setdefault(offer.name, offer.fee)
        return sum(fees.get((name or "").strip(), 0) for name in names)

    def incentive_for(self, names: Iterable[str]) -> int:
        wanted = {(name or "").strip() for name in names}
        return sum(
            addon.incentive_amount for addon in self._settings.addons if addon.name in wanted
        )
