from __future__ import annotations

from fastapi import APIRouter, HTTPException

from api.schemas.pricing import (
    InstallmentIn,
    InstallmentOut,
    OpeningTypeQuotesOut,
    PlanFeeIn,
    PlanFeeOut,
    PricingQuoteIn,
    PricingQuoteOut,
    RequiredAddonsOut,
    SnapshotOut,
    VariantOut,
)
from services.device_pricing import (
    PricingContext,
    PricingQuote,
    PricingSession,
    PricingValidationError,
    QuoteOptions,
    SnapshotNotFoundError,
    amortize,
    default_plan_group,
    parse_opening_type,
    plan_fee,
)

router = APIRouter(prefix="/pricing", tags=["pricing"])

_session = PricingSession()


def _context(payload: PricingQuoteIn) -> PricingContext:
    opening_type = parse_opening_type(payload.opening_type)
    if opening_type is None:
        raise HTTPException(
            status_code=400,
            detail=f"opening_type '{payload.opening_type}' is not supported",
        )
    return PricingContext(
        model_id=payload.model_id,
        carrier=payload.carrier.upper(),
        plan_group=payload.plan_group
        or default_plan_group(payload.is_budget, payload.is_premium),
        opening_type=opening_type,
        display_name=payload.display_name,
        factory_price=payload.factory_price,
        contract_type=payload.contract_type,
        selected_addon_names=tuple(payload.selected_addons),
    )


def _options(payload: PricingQuoteIn) -> QuoteOptions:
    months = payload.installment_months
    return QuoteOptions(
        payment_mode=payload.payment_mode,
        installment_months=(
            _session.config.installment_months if months is None else months
        ),
        plan_base_fee=payload.plan_base_fee,
        lg_premier_selected=payload.lg_premier,
        use_public_support=payload.use_public_support,
        cash_price=payload.cash_price,
    )


def _quote_out(quote: PricingQuote, context: PricingContext) -> PricingQuoteOut:
    required = quote.required_addons
    insurance = required.insurance
    return PricingQuoteOut(
        status=quote.status.value,
        opening_type=context.opening_type.value,
        plan_group=context.plan_group,
        factory_price=quote.factory_price,
        carrier_subsidy=quote.carrier_subsidy,
        with_addon=VariantOut(**vars(quote.with_addon)),
        without_addon=VariantOut(**vars(quote.without_addon)),
        required_addons=RequiredAddonsOut(
            names=list(required.names),
            total_incentive=required.total_incentive,
            total_deduction=required.total_deduction,
            insurance_name=insurance.name if insurance else None,
            insurance_fee=insurance.fee if insurance else 0,
        ),
        special_policies=sorted(
            set(quote.special_with_addon.matched) | set(quote.special_without_addon.matched)
        ),
    )


@router.post("/quote", response_model=PricingQuoteOut)
def quote_pricing(payload: PricingQuoteIn) -> PricingQuoteOut:
    context = _context(payload)
    try:
        facade = _session.facade(context.carrier)
    except PricingValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return _quote_out(facade.compute_all(context, _options(payload)), context)


@router.post("/quote/opening-types", response_model=OpeningTypeQuotesOut)
def quote_opening_types(payload: PricingQuoteIn) -> OpeningTypeQuotesOut:
    context = _context(payload)
    try:
        facade = _session.facade(context.carrier)
    except PricingValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    quotes = facade.quote_opening_types(context, _options(payload))
    return OpeningTypeQuotesOut(
        model_id=context.model_id,
        plan_group=context.plan_group,
        quotes={
            opening.value: _quote_out(quote, context.with_opening_type(opening))
            for opening, quote in quotes.items()
        },
    )


@router.get("/required-addons", response_model=RequiredAddonsOut)
def required_addons(
    carrier: str, display_name: str = "", factory_price: int = 0
) -> RequiredAddonsOut:
    try:
        catalog = _session.facade(carrier).catalog
    except PricingValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    if catalog is None:
        raise HTTPException(status_code=503, detail="pricing snapshot is loading")

    required = catalog.required_addons_for(display_name, factory_price, carrier)
    insurance = required.insurance
    return RequiredAddonsOut(
        names=list(required.names),
        total_incentive=required.total_incentive,
        total_deduction=required.total_deduction,
        insurance_name=insurance.name if insurance else None,
        insurance_fee=insurance.fee if insurance else 0,
    )


@router.post("/installment", response_model=InstallmentOut)
def installment(payload: InstallmentIn) -> InstallmentOut:
    result = amortize(payload.principal, payload.months)
    return InstallmentOut(**vars(result))


@router.post("/plan-fee", response_model=PlanFeeOut)
def discounted_plan_fee(payload: PlanFeeIn) -> PlanFeeOut:
    return PlanFeeOut(
        base_fee=payload.base_fee,
        plan_fee=plan_fee(
            payload.base_fee, payload.contract_type, payload.carrier, payload.lg_premier
        ),
    )


@router.post("/snapshots/{carrier}/reload", response_model=SnapshotOut)
def reload_snapshot(carrier: str) -> SnapshotOut:
    try:
        snapshot = _session.load(carrier)
    except SnapshotNotFoundError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    except PricingValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    return SnapshotOut(
        carrier=snapshot.carrier,
        rows=len(snapshot.table),
        addons=len(snapshot.settings.addons),
        insurances=len(snapshot.settings.insurances),
        special_policies=len(snapshot.settings.special_policies),
        loaded_at=snapshot.loaded_at,
    )
