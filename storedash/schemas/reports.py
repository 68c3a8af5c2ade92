"""Pydantic schemas for the multi-tab reports endpoint."""

from enum import Enum
from typing import Any

from storedash.schemas.base import CamelModel


class ReportViewName(str, Enum):
    """Tabs the reports endpoint accepts."""

    SALES = "sales"
    FINANCE = "finance"
    INVENTORY = "inventory"
    PURCHASES = "purchases"
    DEBTS = "debts"
    CUSTOMERS = "customers"
    HR = "hr"
    CUSTOM = "custom"


class KpiFormat(str, Enum):
    CURRENCY = "currency"
    NUMBER = "number"
    PERCENT = "percent"


class Kpi(CamelModel):
    """A single named scalar metric with its display format."""

    title: str
    value: Any
    format: KpiFormat


class ReportView(CamelModel):
    """KPIs, chart series and ranked tables for one report tab."""

    kpis: list[Kpi] = []
    charts: dict[str, list[dict[str, Any]]] = {}
    tables: dict[str, list[dict[str, Any]]] = {}
    not_implemented: bool | None = None
    view: str | None = None
