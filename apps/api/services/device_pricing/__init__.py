from __future__ import annotations

from .calculators import Amortization, amortize, floor10, plan_fee
from .catalog import AdjustmentCatalog
from .config import PricingConfig
from .facade import (
    PAYMENT_CASH,
    PAYMENT_INSTALLMENT,
    PricingFacade,
    PricingQuote,
    QuoteOptions,
    VariantTotals,
    default_plan_group,
)
from .models import (
    OpeningType,
    PricingContext,
    ResolutionStatus,
    parse_opening_type,
)
from .schema import PricingValidationError
from .session import PricingSession, SnapshotNotFoundError
from .special_policy import SpecialPolicyEngine
from .table import PriceResolver, PriceTable

__all__ = [
    "PAYMENT_CASH",
    "PAYMENT_INSTALLMENT",
    "AdjustmentCatalog",
    "Amortization",
    "OpeningType",
    "PriceResolver",
    "PriceTable",
    "PricingConfig",
    "PricingContext",
    "PricingFacade",
    "PricingQuote",
    "PricingSession",
    "PricingValidationError",
    "QuoteOptions",
    "ResolutionStatus",
    "SnapshotNotFoundError",
    "SpecialPolicyEngine",
    "VariantTotals",
    "amortize",
    "default_plan_group",
    "floor10",
    "parse_opening_type",
    "plan_fee",
]
