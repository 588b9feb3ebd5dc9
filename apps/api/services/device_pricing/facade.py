from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from .calculators import (
    amortize,
    plan_fee,
    support_with_addon,
    support_without_addon,
)
from .catalog import AdjustmentCatalog
from .config import PricingConfig
from .models import (
    OpeningType,
    PolicySettings,
    PricingContext,
    PricingRow,
    RequiredAddons,
    ResolutionStatus,
    SpecialAdjustment,
)
from .special_policy import SpecialPolicyEngine
from .table import PriceResolver, PriceTable

PAYMENT_INSTALLMENT = "installment"
PAYMENT_CASH = "cash"

PREMIUM_PLAN_GROUP = "115군"
BUDGET_PLAN_GROUP = "33군"


def default_plan_group(is_budget: bool, is_premium: bool) -> str:
    if is_budget and not is_premium:
        return BUDGET_PLAN_GROUP
    return PREMIUM_PLAN_GROUP


def purchase_price(factory_price: int, carrier_subsidy: int, store_support: int) -> int:
    return max(0, factory_price - carrier_subsidy - store_support)


def installment_principal(
    factory_price: int,
    carrier_subsidy: int,
    store_support: int,
    use_public_support: bool = True,
) -> int:
    subsidy = carrier_subsidy if use_public_support else 0
    return max(0, factory_price - subsidy - store_support)


def cash_price(principal: int, manual_cash_price: Optional[int] = None) -> int:
    manual = manual_cash_price or 0
    if principal > 0 and manual == 0:
        return principal
    return manual


@dataclass(frozen=True)
class QuoteOptions:
    payment_mode: str = PAYMENT_INSTALLMENT
    installment_months: int = 24
    plan_base_fee: int = 0
    lg_premier_selected: bool = False
    use_public_support: bool = True
    cash_price: Optional[int] = None


@dataclass(frozen=True)
class VariantTotals:
    store_support: int = 0
    installment_principal: int = 0
    purchase_price: int = 0
    cash_price: int = 0
    monthly_installment: int = 0
    monthly_plan_fee: int = 0
    monthly_addon_fee: int = 0
    monthly_total: int = 0


@dataclass(frozen=True)
class PricingQuote:
    status: ResolutionStatus
    with_addon: VariantTotals = field(default_factory=VariantTotals)
    without_addon: VariantTotals = field(default_factory=VariantTotals)
    factory_price: int = 0
    carrier_subsidy: int = 0
    required_addons: RequiredAddons = field(default_factory=RequiredAddons)
    special_with_addon: SpecialAdjustment = field(default_factory=SpecialAdjustment)
    special_without_addon: SpecialAdjustment = field(default_factory=SpecialAdjustment)

    @property
    def resolved(self) -> bool:
        return self.status is ResolutionStatus.FOUND


class PricingFacade:
    """
    Computes customer-facing totals for one device from a carrier snapshot.

    Pure: the table and settings are treated as immutable, so the same
    context and options always yield the same quote.
    """

    def __init__(
        self,
        table: Optional[PriceTable],
        settings: Optional[PolicySettings],
        config: Optional[PricingConfig] = None,
    ) -> None:
        self._config = config or PricingConfig.from_env()
        self._resolver = PriceResolver(table)
        self._settings = settings
        self._catalog = (
            AdjustmentCatalog(settings, flip_fold_carrier=self._config.flip_fold_carrier)
            if settings is not None
            else None
        )
        self._policies = SpecialPolicyEngine(
            settings.active_policies if settings is not None else ()
        )

    @property
    def catalog(self) -> Optional[AdjustmentCatalog]:
        return self._catalog

    def compute_all(
        self, context: PricingContext, options: Optional[QuoteOptions] = None
    ) -> PricingQuote:
        options = options or QuoteOptions(
            installment_months=self._config.installment_months
        )
        if self._settings is None or self._catalog is None:
            return PricingQuote(status=ResolutionStatus.LOADING)

        resolution = self._resolver.resolve(
            context.model_id, context.plan_group, context.opening_type
        )
        if not resolution.found:
            return PricingQuote(status=resolution.status)

        row: PricingRow = resolution.row  # type: ignore[assignment]
        factory_price = row.factory_price or context.factory_price
        context = context.with_store_support(None)
        required = self._catalog.required_addons_for(
            context.display_name or context.model_id, factory_price, context.carrier
        )
        margin = self._settings.base_margin
        incentive = required.total_incentive + self._catalog.incentive_for(
            name
            for name in context.selected_addon_names
            if name not in required.names
        )

        def _with_addon(special: SpecialAdjustment) -> int:
            return support_with_addon(
                row.store_rebate_with_addon,
                margin,
                incentive,
                special.total_addition,
            )

        def _without_addon(special: SpecialAdjustment) -> int:
            return support_without_addon(
                row.store_rebate_without_addon,
                margin,
                -required.total_deduction,
                special.signed_deduction,
            )

        first_pass = self._policies.evaluate(context)
        special_with = self._policies.evaluate(
            context.with_store_support(_with_addon(first_pass))
        )
        special_without = self._policies.evaluate(
            context.with_store_support(_without_addon(first_pass))
        )

        addon_fee = self._catalog.monthly_fee_for(context.selected_addon_names)
        return PricingQuote(
            status=ResolutionStatus.FOUND,
            with_addon=self._totals(
                _with_addon(special_with), row, factory_price, context, options, addon_fee
            ),
            without_addon=self._totals(
                _without_addon(special_without), row, factory_price, context, options, 0
            ),
            factory_price=factory_price,
            carrier_subsidy=row.carrier_subsidy,
            required_addons=required,
            special_with_addon=special_with,
            special_without_addon=special_without,
        )

    def quote_opening_types(
        self, context: PricingContext, options: Optional[QuoteOptions] = None
    ) -> Dict[OpeningType, PricingQuote]:
        return {
            opening: self.compute_all(context.with_opening_type(opening), options)
            for opening in OpeningType
        }

    def _totals(
        self,
        store_support: int,
        row: PricingRow,
        factory_price: int,
        context: PricingContext,
        options: QuoteOptions,
        addon_fee: int,
    ) -> VariantTotals:
        principal = installment_principal(
            factory_price,
            row.carrier_subsidy,
            store_support,
            options.use_public_support,
        )
        monthly_plan = plan_fee(
            options.plan_base_fee,
            context.contract_type,
            context.carrier,
            options.lg_premier_selected,
        )
        if options.payment_mode == PAYMENT_CASH:
            monthly_installment = 0
            monthly_total = 0
        else:
            monthly_installment = amortize(
                principal, options.installment_months
            ).monthly_payment
            monthly_total = monthly_installment + monthly_plan + addon_fee

        return VariantTotals(
            store_support=store_support,
            installment_principal=principal,
            purchase_price=purchase_price(factory_price, row.carrier_subsidy, store_support),
            cash_price=cash_price(principal, options.cash_price),
            monthly_installment=monthly_installment,
            monthly_plan_fee=monthly_plan,
            monthly_addon_fee=addon_fee,
            monthly_total=monthly_total,
        )

