"""Record factories for the in-memory document store.

Rows are plain dicts shaped like the SQL store returns them (snake_case
column names, ``Decimal`` amounts, tz-aware timestamps).

Usage:
    sale = SaleFactory.build(total_amount=Decimal("40"), invoice_currency="SOS")
    store.add(Collection.SALES, sale)
"""

from datetime import UTC, datetime
from decimal import Decimal
from uuid import uuid4

import factory

from storedash.models import SettlementStatus

STORE_ID = "store-1"


def _now() -> datetime:
    return datetime.now(UTC)


class _RowFactory(factory.DictFactory):
    id = factory.LazyFunction(lambda: str(uuid4()))
    store_id = STORE_ID


class SaleFactory(_RowFactory):
    invoice_currency = "USD"
    total_amount = Decimal("100.00")
    customer_name = None
    payment_status = "paid"
    created_at = factory.LazyFunction(_now)
    items = factory.LazyFunction(list)
    payment_lines = factory.LazyFunction(list)


class RefundFactory(_RowFactory):
    currency = "USD"
    amount = Decimal("10.00")
    created_at = factory.LazyFunction(_now)


class IncomeFactory(_RowFactory):
    currency = "USD"
    amount = Decimal("100.00")
    category = "Sales"
    payment_method = "CASH"
    user_name = None
    created_at = factory.LazyFunction(_now)


class ExpenseFactory(IncomeFactory):
    category = "Rent"


class DebtFactory(_RowFactory):
    currency = "USD"
    amount_due = Decimal("50.00")
    total_paid = Decimal("0.00")
    status = SettlementStatus.UNPAID.value
    customer_name = factory.Sequence(lambda n: f"Customer {n}")
    created_at = factory.LazyFunction(_now)


class PurchaseFactory(_RowFactory):
    currency = "USD"
    total_amount = Decimal("200.00")
    remaining_amount = Decimal("0.00")
    status = SettlementStatus.PAID.value
    supplier_name = factory.Sequence(lambda n: f"Supplier {n}")
    purchase_date = factory.LazyFunction(_now)


class ProductFactory(_RowFactory):
    name = factory.Sequence(lambda n: f"Product {n}")
    quantity = 100
    cost_prices = factory.LazyFunction(lambda: {"USD": Decimal("2.00")})
    sale_prices = factory.LazyFunction(lambda: {"USD": Decimal("5.00")})
    category = None
    low_stock_threshold = None


class CustomerFactory(_RowFactory):
    name = factory.Sequence(lambda n: f"Customer {n}")


class SupplierFactory(_RowFactory):
    name = factory.Sequence(lambda n: f"Supplier {n}")
    total_spent = Decimal("0.00")
    total_owed = Decimal("0.00")


class ActivityFactory(_RowFactory):
    description = factory.Sequence(lambda n: f"Event {n}")
    user_name = "Amina"
    timestamp = factory.LazyFunction(_now)


class UserRowFactory(_RowFactory):
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    name = factory.Sequence(lambda n: f"User {n}")
    role = "user"


def line_item(name: str, quantity: int | str, price: str, product_id: str | None = None) -> dict:
    return {
        "product_id": product_id or name.lower().replace(" ", "-"),
        "product_name": name,
        "quantity": Decimal(str(quantity)),
        "price_per_unit": Decimal(price),
    }


def payment(method: str, value: str) -> dict:
    return {"method": method, "value_in_invoice_currency": Decimal(value)}
