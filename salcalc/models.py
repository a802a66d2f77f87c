"""SALCalc Pydantic models for the works catalogue, measurements and contract.

These are the source records the ledger is replayed from. The import
collaborator emits camelCase keys; models accept both camelCase and
snake_case and serialise back to camelCase.
"""

from __future__ import annotations

import re
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING, Annotated, Any, Literal
from uuid import uuid4

import structlog
from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from salcalc.core.money import ZERO, to_decimal

if TYPE_CHECKING:
    from salcalc.config import ContractDefaults

logger = structlog.get_logger(__name__)

_ISO_PREFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})[T ]")


def _iso_date_part(value: Any) -> Any:
    # "2024-01-05T08:30:00Z" -> "2024-01-05"; everything else is left to pydantic
    if isinstance(value, str):
        match = _ISO_PREFIX.match(value.strip())
        if match:
            return match.group(1)
        return value.strip()
    return value


def _no_float_noise(value: Any) -> Any:
    if isinstance(value, float):
        return str(value)
    return value


def _none_as_zero(value: Any) -> Any:
    if value is None or value == "":
        return ZERO
    return _no_float_noise(value)


def _coerce_percent(value: Any) -> Decimal:
    result = to_decimal(value, default=None)
    if result is None:
        logger.warning("non_numeric_percentage", value=value)
        return ZERO
    return result


IsoDate = Annotated[date, BeforeValidator(_iso_date_part)]
Amount = Annotated[Decimal, BeforeValidator(_no_float_noise)]
Rate = Annotated[Decimal, BeforeValidator(_none_as_zero)]
Percent = Annotated[Decimal, BeforeValidator(_coerce_percent)]


def new_id() -> str:
    return str(uuid4())


class SalcalcModel(BaseModel):
    """Base model: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BillingModel(str, Enum):
    """How a work group is billed."""

    MEASURED = "measure"  # A misura: quantity x unit price
    LUMP_SUM = "body"  # A corpo: percentage of a fixed group value

    @classmethod
    def parse(cls, value: Any) -> BillingModel:
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("_", "").replace(" ", "")
        aliases = {
            "measure": cls.MEASURED,
            "measured": cls.MEASURED,
            "amisura": cls.MEASURED,
            "body": cls.LUMP_SUM,
            "lumpsum": cls.LUMP_SUM,
            "acorpo": cls.LUMP_SUM,
        }
        if key not in aliases:
            raise ValueError(f"Unknown billing model: {value!r}")
        return aliases[key]


class Measurement(SalcalcModel):
    """A committed measurement. Negative quantities are reversals (storno)."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    date: IsoDate
    quantity: Amount
    note: str = ""
    team_id: str | None = None
    worker_ids: list[str] = Field(default_factory=list)
    location: str | None = None

    # Dimensional factors (informational; quantity is already their product)
    factor: Amount | None = None
    length: Amount | None = None
    width: Amount | None = None
    height: Amount | None = None


class Variation(SalcalcModel):
    """Contract quantity amendment (perizia di variante)."""

    id: str = Field(default_factory=new_id)
    number: str
    date: IsoDate
    type: Literal["increase", "decrease"]
    quantity: Amount  # Absolute value of the change
    note: str | None = None

    @property
    def signed_quantity(self) -> Decimal:
        return self.quantity if self.type == "increase" else -self.quantity


class WorkItem(SalcalcModel):
    """Catalogue line (voce di computo)."""

    article_code: str
    description: str = ""
    unit: str = ""
    quantity: Amount = ZERO  # Original contract quantity
    unit_price: Amount
    labor_rate: Rate = ZERO  # Labor incidence as a percentage, e.g. 3.48
    measurements: list[Measurement] = Field(default_factory=list)
    variations: list[Variation] = Field(default_factory=list)

    @field_validator("measurements", "variations", mode="before")
    @classmethod
    def validate_lists(cls, v: Any) -> Any:
        return [] if v is None else v


class WorkGroup(SalcalcModel):
    """Catalogue grouping (WBS). Owns one or more work items."""

    id: str = Field(default_factory=new_id)
    name: str
    value: Amount = ZERO  # Denominator for lump-sum progress only
    billing_model: BillingModel = Field(
        default=BillingModel.MEASURED,
        validation_alias=AliasChoices("billing_model", "billingModel", "accountingType"),
    )
    is_security_cost: bool = False  # Oneri sicurezza: never discounted
    items: list[WorkItem] = Field(default_factory=list)

    @field_validator("billing_model", mode="before")
    @classmethod
    def validate_billing_model(cls, v: Any) -> BillingModel:
        if v is None:
            return BillingModel.MEASURED
        return BillingModel.parse(v)

    @field_validator("is_security_cost", mode="before")
    @classmethod
    def validate_security(cls, v: Any) -> Any:
        return False if v is None else v


class ProjectDocument(SalcalcModel):
    """An imported bill of quantities (computo metrico)."""

    file_name: str
    work_groups: list[WorkGroup] = Field(default_factory=list)
    is_frozen: bool = False  # Frozen documents contribute nothing to the ledger

    @field_validator("is_frozen", mode="before")
    @classmethod
    def validate_frozen(cls, v: Any) -> Any:
        return False if v is None else v


class ContractConfig(SalcalcModel):
    """Contract terms read by every snapshot and certificate.

    Percentages that are missing or non-numeric are coerced to 0.
    """

    discount_percent: Percent = ZERO  # Ribasso d'asta
    withholding_tax_percent: Percent = ZERO  # Ritenuta di garanzia
    vat_percent: Percent = ZERO
    advance_payment_percent: Percent = ZERO  # Recupero anticipazione
    exclude_labor_from_discount: bool = False  # Scorporo manodopera dal ribasso

    contract_code: str | None = None  # CIG / CUP
    contractor_name: str | None = None
    contract_date: IsoDate | None = None

    @field_validator("exclude_labor_from_discount", mode="before")
    @classmethod
    def validate_exclude_labor(cls, v: Any) -> Any:
        if v is None or v == "":
            return False
        if isinstance(v, str):
            return v.strip().lower() in {"1", "true", "yes", "si", "sì"}
        return v

    @field_validator("contract_date", mode="before")
    @classmethod
    def validate_contract_date(cls, v: Any) -> Any:
        return None if v == "" else v

    @classmethod
    def from_defaults(cls, defaults: ContractDefaults) -> ContractConfig:
        return cls(
            discount_percent=defaults.discount_percent,
            withholding_tax_percent=defaults.withholding_tax_percent,
            vat_percent=defaults.vat_percent,
            advance_payment_percent=defaults.advance_payment_percent,
            exclude_labor_from_discount=defaults.exclude_labor_from_discount,
        )


class Checkpoint(SalcalcModel):
    """Stato Avanzamento Lavori: a numbered billing cut-off."""

    id: str = Field(default_factory=new_id)
    number: int
    date: IsoDate
    description: str | None = None
    locked: bool = Field(
        default=False, validation_alias=AliasChoices("isLocked", "locked")
    )

    @model_validator(mode="after")
    def fill_description(self) -> Checkpoint:
        if not self.description:
            self.description = describe_checkpoint(self.number, self.date)
        return self


def describe_checkpoint(number: int, cutoff: date) -> str:
    return f"SAL N. {number} a tutto il {cutoff.strftime('%d/%m/%Y')}"


class Project(SalcalcModel):
    """Everything the ledger is replayed from."""

    name: str = ""
    documents: list[ProjectDocument] = Field(
        default_factory=list,
        validation_alias=AliasChoices("documents", "projectDocuments"),
    )
    contract: ContractConfig | None = Field(
        default=None, validation_alias=AliasChoices("contract", "contractConfig")
    )
    checkpoints: list[Checkpoint] = Field(
        default_factory=list, validation_alias=AliasChoices("checkpoints", "sals")
    )
