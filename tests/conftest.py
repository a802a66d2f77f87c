"""Pytest configuration and fixtures for SALCalc tests.

Provides small catalogues whose totals are easy to check by hand.
"""

from __future__ import annotations

import json
from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from salcalc.config import reset_config
from salcalc.models import (
    BillingModel,
    Checkpoint,
    ContractConfig,
    Measurement,
    Project,
    ProjectDocument,
    WorkGroup,
    WorkItem,
)


@pytest.fixture(autouse=True)
def _fresh_config():
    reset_config()
    yield
    reset_config()


@pytest.fixture
def measured_item() -> WorkItem:
    """Quantity 10 @ 100.00 with 20% labor, measured 4 then 6."""
    return WorkItem(
        article_code="A.01.001",
        description="Scavo a sezione obbligata",
        unit="m3",
        quantity=Decimal("10"),
        unit_price=Decimal("100"),
        labor_rate=Decimal("20"),
        measurements=[
            Measurement(id="m-1", date=date(2024, 1, 1), quantity=Decimal("4")),
            Measurement(id="m-2", date=date(2024, 1, 5), quantity=Decimal("6")),
        ],
    )


@pytest.fixture
def measured_group(measured_item: WorkItem) -> WorkGroup:
    return WorkGroup(
        id="grp-measured",
        name="Scavi",
        value=Decimal("1000"),
        billing_model=BillingModel.MEASURED,
        items=[measured_item],
    )


@pytest.fixture
def lump_sum_group() -> WorkGroup:
    """Value 5000; two items measured on the same day for 500 + 250."""
    return WorkGroup(
        id="body-group-1",
        name="Impianto elettrico",
        value=Decimal("5000"),
        billing_model=BillingModel.LUMP_SUM,
        items=[
            WorkItem(
                article_code="E.01",
                unit="cad",
                quantity=Decimal("10"),
                unit_price=Decimal("100"),
                labor_rate=Decimal("10"),
                measurements=[
                    Measurement(id="b-1", date=date(2024, 2, 1), quantity=Decimal("5"))
                ],
            ),
            WorkItem(
                article_code="E.02",
                unit="cad",
                quantity=Decimal("4"),
                unit_price=Decimal("250"),
                measurements=[
                    Measurement(id="b-2", date=date(2024, 2, 1), quantity=Decimal("1"))
                ],
            ),
        ],
    )


@pytest.fixture
def security_group() -> WorkGroup:
    return WorkGroup(
        id="grp-security",
        name="Oneri sicurezza",
        is_security_cost=True,
        items=[
            WorkItem(
                article_code="S.01",
                unit="cad",
                quantity=Decimal("2"),
                unit_price=Decimal("150"),
                labor_rate=Decimal("50"),
                measurements=[
                    Measurement(id="s-1", date=date(2024, 1, 3), quantity=Decimal("1"))
                ],
            )
        ],
    )


@pytest.fixture
def labor_contract() -> ContractConfig:
    return ContractConfig(
        discount_percent=Decimal("10"),
        withholding_tax_percent=Decimal("0.5"),
        vat_percent=Decimal("22"),
        advance_payment_percent=Decimal("20"),
        exclude_labor_from_discount=True,
    )


@pytest.fixture
def measured_project(measured_group: WorkGroup, labor_contract: ContractConfig) -> Project:
    return Project(
        name="Scuola via Roma",
        documents=[ProjectDocument(file_name="computo.xlsx", work_groups=[measured_group])],
        contract=labor_contract,
    )


@pytest.fixture
def mixed_project(
    measured_group: WorkGroup,
    lump_sum_group: WorkGroup,
    security_group: WorkGroup,
    labor_contract: ContractConfig,
) -> Project:
    return Project(
        name="Palestra comunale",
        documents=[
            ProjectDocument(
                file_name="computo.xlsx",
                work_groups=[measured_group, lump_sum_group, security_group],
            )
        ],
        contract=labor_contract,
        checkpoints=[
            Checkpoint(id="sal-1", number=1, date=date(2024, 1, 3)),
            Checkpoint(id="sal-2", number=2, date=date(2024, 2, 1)),
        ],
    )


@pytest.fixture
def write_project():
    """Write a Project to a JSON or YAML file, as the import collaborator would."""

    def _write(project: Project, path: Path) -> Path:
        payload = project.model_dump(mode="json", by_alias=True)
        if path.suffix == ".json":
            path.write_text(json.dumps(payload))
        else:
            path.write_text(yaml.safe_dump(payload))
        return path

    return _write


@pytest.fixture
def saved_project_data() -> dict:
    """A project exported by the web application, records nested under ``data``."""
    return {
        "id": "p-1",
        "name": "Scuola via Roma",
        "lastModified": "2024-02-01T10:00:00Z",
        "contractConfig": {"discountPercent": 10, "vatPercent": "22", "advancePaymentPercent": ""},
        "data": {
            "projectDocuments": [
                {
                    "fileName": "computo.xlsx",
                    "totalValue": 1000,
                    "workGroups": [
                        {
                            "id": "g-1",
                            "name": "Scavi",
                            "value": 1000,
                            "color": "#3b82f6",
                            "startDate": "2024-01-01",
                            "accountingType": "measure",
                            "items": [
                                {
                                    "articleCode": "A.01",
                                    "description": "Scavo",
                                    "unit": "m3",
                                    "quantity": 10,
                                    "unitPrice": 100,
                                    "laborRate": 20,
                                    "total": 1000,
                                    "measurements": [
                                        {"id": "m-1", "date": "2024-01-01", "quantity": 4, "note": ""}
                                    ],
                                }
                            ],
                        }
                    ],
                }
            ],
            "expenses": [{"id": "e-1", "amount": 120.5, "category": "Noli"}],
            "teams": [{"id": "t-1", "name": "Squadra A"}],
            "sals": [
                {
                    "id": "s-1",
                    "number": 1,
                    "date": "2024-01-31",
                    "totalAmount": 368,
                    "isLocked": True,
                }
            ],
        },
    }
