from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class PricingQuoteIn(BaseModel):
    carrier: str = Field(..., min_length=1)
    model_id: str = Field(..., min_length=1)
    plan_group: str = ""
    opening_type: str = Field(default="010신규", min_length=1)
    display_name: str = ""
    factory_price: int = Field(default=0, ge=0)
    contract_type: str = ""
    selected_addons: List[str] = Field(default_factory=list)
    payment_mode: Literal["installment", "cash"] = "installment"
    installment_months: Optional[int] = Field(default=None, ge=0, le=60)
    plan_base_fee: int = Field(default=0, ge=0)
    lg_premier: bool = False
    use_public_support: bool = True
    cash_price: Optional[int] = Field(default=None, ge=0)
    is_budget: bool = False
    is_premium: bool = False

    @field_validator("carrier", "model_id", "plan_group", "opening_type", "contract_type")
    @classmethod
    def _strip_values(cls, value: str) -> str:
        return (value or "").strip()


class InstallmentIn(BaseModel):
    principal: int = Field(..., ge=0)
    months: int = Field(..., ge=0, le=60)


class InstallmentOut(BaseModel):
    total_fee: int = 0
    monthly_payment: int = 0
    monthly_principal: int = 0
    monthly_fee: int = 0


class PlanFeeIn(BaseModel):
    base_fee: int = Field(..., ge=0)
    contract_type: str = ""
    carrier: str = ""
    lg_premier: bool = False


class PlanFeeOut(BaseModel):
    base_fee: int
    plan_fee: int


class RequiredAddonsOut(BaseModel):
    names: List[str] = Field(default_factory=list)
    total_incentive: int = 0
    total_deduction: int = 0
    insurance_name: Optional[str] = None
    insurance_fee: int = 0


class VariantOut(BaseModel):
    store_support: int = 0
    installment_principal: int = 0
    purchase_price: int = 0
    cash_price: int = 0
    monthly_installment: int = 0
    monthly_plan_fee: int = 0
    monthly_addon_fee: int = 0
    monthly_total: int = 0


class PricingQuoteOut(BaseModel):
    status: Literal["found", "notFound", "loading"]
    opening_type: str
    plan_group: str
    factory_price: int = 0
    carrier_subsidy: int = 0
    with_addon: VariantOut = Field(default_factory=VariantOut)
    without_addon: VariantOut = Field(default_factory=VariantOut)
    required_addons: RequiredAddonsOut = Field(default_factory=RequiredAddonsOut)
    special_policies: List[str] = Field(default_factory=list)


class OpeningTypeQuotesOut(BaseModel):
    model_id: str
    plan_group: str
    quotes: Dict[str, PricingQuoteOut] = Field(default_factory=dict)


class SnapshotOut(BaseModel):
    carrier: str
    rows: int
    addons: int
    insurances: int
    special_policies: int
    loaded_at: float
