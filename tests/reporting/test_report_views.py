"""Tests for the report tab pipelines."""

from datetime import UTC, date, datetime
from decimal import Decimal

import pytest

from storedash.models import SettlementStatus
from storedash.services.aggregation import UpstreamUnavailableError
from storedash.services.query import Collection
from storedash.services.report_views import ReportViewBuilder
from tests.factories import (
    STORE_ID,
    CustomerFactory,
    DebtFactory,
    ExpenseFactory,
    IncomeFactory,
    ProductFactory,
    PurchaseFactory,
    RefundFactory,
    SaleFactory,
    SupplierFactory,
    UserRowFactory,
    line_item,
    payment,
)

IN_JUNE = datetime(2024, 6, 10, 12, tzinfo=UTC)


def _kpis(view) -> dict:
    return {kpi.title: kpi.value for kpi in view.kpis}


@pytest.mark.asyncio
class TestDispatch:
    @pytest.mark.parametrize("name", ["custom", "forecast"])
    async def test_unknown_views_are_not_implemented(self, memory_store, june_window, name):
        view = await ReportViewBuilder(memory_store).build(name, STORE_ID, "USD", june_window)

        assert view.not_implemented is True
        assert view.view == name
        assert view.kpis == []
        assert memory_store.specs == []

    @pytest.mark.parametrize("name", ["sales", "finance", "inventory", "purchases", "debts", "customers", "hr"])
    async def test_every_tab_builds_on_empty_store(self, memory_store, june_window, name):
        view = await ReportViewBuilder(memory_store).build(name, STORE_ID, "USD", june_window)

        assert view.not_implemented is None
        assert view.kpis

    async def test_total_outage_raises(self, memory_store, june_window):
        memory_store.fail_all(ConnectionError("store down"))
        with pytest.raises(UpstreamUnavailableError):
            await ReportViewBuilder(memory_store).build("finance", STORE_ID, "USD", june_window)

    async def test_partial_failure_degrades(self, memory_store, june_window):
        memory_store.failures[Collection.EXPENSES] = RuntimeError("bad column")
        memory_store.add(Collection.INCOMES, IncomeFactory.build(amount=Decimal("40"), created_at=IN_JUNE))

        view = await ReportViewBuilder(memory_store).build("finance", STORE_ID, "USD", june_window)

        kpis = _kpis(view)
        assert kpis["Total Income"] == Decimal("40.00")
        assert kpis["Total Expenses"] == Decimal("0.00")


@pytest.mark.asyncio
class TestSalesTab:
    async def test_kpis_charts_and_tables(self, memory_store, june_window):
        memory_store.add(
            Collection.PRODUCTS,
            ProductFactory.build(name="Rice", category="Grains"),
            ProductFactory.build(name="Oil", category=None),
        )
        memory_store.add(
            Collection.SALES,
            SaleFactory.build(
                total_amount=Decimal("100"),
                customer_name="Hodan",
                created_at=IN_JUNE,
                items=[line_item("Rice", 2, "50")],
                payment_lines=[payment("evc_plus", "100")],
            ),
            SaleFactory.build(
                total_amount=Decimal("50"),
                created_at=datetime(2024, 6, 11, tzinfo=UTC),
                items=[line_item("Oil", 1, "50")],
            ),
            SaleFactory.build(total_amount=Decimal("999"), invoice_currency="SOS", created_at=IN_JUNE),
        )
        memory_store.add(Collection.REFUNDS, RefundFactory.build(amount=Decimal("30"), created_at=IN_JUNE))

        view = await ReportViewBuilder(memory_store).build("sales", STORE_ID, "USD", june_window)

        kpis = _kpis(view)
        assert kpis["Total Sales"] == Decimal("150.00")
        assert kpis["Net Sales (Sales - Refunds)"] == Decimal("120.00")
        assert kpis["Transactions"] == 2
        assert kpis["Avg. Sale Value"] == Decimal("75.00")

        trend = view.charts["salesTrend"]
        assert len(trend) == 30
        assert trend[9] == {"date": date(2024, 6, 10), "amount": Decimal("100.00")}

        payments = {row["name"]: row["value"] for row in view.charts["paymentMethods"]}
        assert payments == {"EVC PLUS": Decimal("100.00"), "UNKNOWN": Decimal("50.00")}

        assert [row["name"] for row in view.tables["topProducts"]] == ["Rice", "Oil"]
        categories = {row["name"]: row["revenue"] for row in view.tables["salesByCategory"]}
        assert categories == {"Grains": Decimal("100.00"), "Uncategorized": Decimal("50.00")}
        customers = {row["name"]: row["count"] for row in view.tables["salesByCustomer"]}
        assert customers == {"Hodan": 1, "Walk-in": 1}


@pytest.mark.asyncio
class TestFinanceTab:
    async def test_profit_and_loss(self, memory_store, june_window):
        memory_store.add(Collection.INCOMES, IncomeFactory.build(amount=Decimal("500"), created_at=IN_JUNE))
        memory_store.add(
            Collection.EXPENSES,
            ExpenseFactory.build(amount=Decimal("120"), category="Rent", created_at=IN_JUNE),
            ExpenseFactory.build(amount=Decimal("80"), category="Salaries", created_at=IN_JUNE),
        )

        view = await ReportViewBuilder(memory_store).build("finance", STORE_ID, "USD", june_window)

        assert _kpis(view) == {
            "Total Income": Decimal("500.00"),
            "Total Expenses": Decimal("200.00"),
            "Net Profit": Decimal("300.00"),
        }
        pnl = view.tables["profitAndLoss"]
        assert [row["item"] for row in pnl] == ["Total Income", "Total Expenses", "Net Profit"]
        assert pnl[1]["amount"] == Decimal("-200.00")
        assert pnl[2]["isBold"] is True
        assert [row["name"] for row in view.tables["expenseBreakdown"]] == ["Rent", "Salaries"]
        assert len(view.charts["incomeExpenseTrend"]) == 30


@pytest.mark.asyncio
class TestInventoryTab:
    async def test_stock_levels_and_movement(self, memory_store, june_window):
        memory_store.add(
            Collection.PRODUCTS,
            ProductFactory.build(name="Rice", quantity=3, cost_prices={"USD": Decimal("2")}, category="Grains"),
            ProductFactory.build(name="Oil", quantity=0, cost_prices={"USD": Decimal("4")}),
            ProductFactory.build(
                name="Sugar", quantity=8, cost_prices={"USD": Decimal("1")}, low_stock_threshold=10
            ),
            ProductFactory.build(name="Tea", quantity=40, cost_prices={"USD": Decimal("1")}),
        )
        memory_store.add(
            Collection.SALES,
            SaleFactory.build(created_at=IN_JUNE, items=[line_item("Tea", 9, "1")]),
            SaleFactory.build(created_at=IN_JUNE, invoice_currency="SOS", items=[line_item("Rice", 2, "1")]),
        )

        view = await ReportViewBuilder(memory_store).build("inventory", STORE_ID, "USD", june_window)

        kpis = _kpis(view)
        assert kpis["Total Products"] == 4
        assert kpis["Total Stock Value (USD)"] == Decimal("54.00")
        assert kpis["Low Stock Items"] == 2
        assert kpis["Out of Stock Items"] == 1
        assert {row["name"] for row in view.tables["lowStock"]} == {"Rice", "Sugar"}
        assert view.tables["fastMoving"][0]["name"] == "Tea"
        assert view.tables["fastMoving"][1]["name"] == "Rice"
        assert view.tables["stockValuation"][0]["name"] == "Tea"

    async def test_zero_threshold_disables_low_stock_alert(self, memory_store, june_window):
        memory_store.add(
            Collection.PRODUCTS,
            ProductFactory.build(name="Salt", quantity=2, low_stock_threshold=0),
            ProductFactory.build(name="Flour", quantity=2),
        )

        view = await ReportViewBuilder(memory_store).build("inventory", STORE_ID, "USD", june_window)

        assert _kpis(view)["Low Stock Items"] == 1
        assert [row["name"] for row in view.tables["lowStock"]] == ["Flour"]


@pytest.mark.asyncio
class TestPurchasesAndDebts:
    async def test_purchases_use_purchase_date(self, memory_store, june_window):
        memory_store.add(
            Collection.PURCHASES,
            PurchaseFactory.build(
                total_amount=Decimal("300"),
                remaining_amount=Decimal("100"),
                status=SettlementStatus.PARTIAL.value,
                supplier_name="Berbera Traders",
                purchase_date=IN_JUNE,
            ),
            PurchaseFactory.build(total_amount=Decimal("50"), supplier_name="Berbera Traders", purchase_date=IN_JUNE),
            PurchaseFactory.build(total_amount=Decimal("70"), purchase_date=datetime(2024, 7, 1, tzinfo=UTC)),
        )

        view = await ReportViewBuilder(memory_store).build("purchases", STORE_ID, "USD", june_window)

        assert _kpis(view) == {
            "Total Purchases": Decimal("350.00"),
            "Pending Payables": Decimal("100.00"),
            "Total Orders": 2,
        }
        assert view.tables["topSuppliers"][0] == {"name": "Berbera Traders", "count": 2, "total": Decimal("350.00")}

    async def test_debts_tab(self, memory_store, june_window):
        memory_store.add(
            Collection.DEBTS,
            DebtFactory.build(
                amount_due=Decimal("40"), total_paid=Decimal("10"), customer_name="Ayan", created_at=IN_JUNE
            ),
            DebtFactory.build(amount_due=Decimal("0"), total_paid=Decimal("25"), customer_name="Ali", created_at=IN_JUNE),
        )

        view = await ReportViewBuilder(memory_store).build("debts", STORE_ID, "USD", june_window)

        assert _kpis(view) == {
            "Total Outstanding Debts": Decimal("40.00"),
            "Total Collected": Decimal("35.00"),
            "Total Debtors": 1,
        }
        assert view.tables["topDebtors"] == [{"name": "Ayan", "count": 1, "total": Decimal("40.00")}]


@pytest.mark.asyncio
class TestPeopleTabs:
    async def test_customers_tab_skips_walk_ins(self, memory_store, june_window):
        memory_store.add(Collection.CUSTOMERS, CustomerFactory.build(), CustomerFactory.build())
        memory_store.add(Collection.SUPPLIERS, SupplierFactory.build(name="Hargeisa Wholesale", total_spent=Decimal("900")))
        memory_store.add(
            Collection.SALES,
            SaleFactory.build(customer_name="Hodan", total_amount=Decimal("30"), created_at=IN_JUNE),
            SaleFactory.build(customer_name="Hodan", total_amount=Decimal("10"), created_at=IN_JUNE),
            SaleFactory.build(customer_name="Walk-in", total_amount=Decimal("500"), created_at=IN_JUNE),
            SaleFactory.build(customer_name=None, total_amount=Decimal("500"), created_at=IN_JUNE),
        )

        view = await ReportViewBuilder(memory_store).build("customers", STORE_ID, "USD", june_window)

        assert _kpis(view) == {"Total Customers": 2, "Total Suppliers": 1}
        top = view.tables["topCustomers"]
        assert [row["name"] for row in top] == ["Hodan"]
        assert top[0]["total"] == Decimal("40.00")
        assert top[0]["avg"] == Decimal("20.00")
        assert view.tables["topSuppliers"][0]["name"] == "Hargeisa Wholesale"

    async def test_hr_tab(self, memory_store, june_window):
        memory_store.add(Collection.USERS, UserRowFactory.build(), UserRowFactory.build(), UserRowFactory.build(store_id="x"))
        memory_store.add(
            Collection.INCOMES,
            IncomeFactory.build(user_name="Amina", amount=Decimal("20"), created_at=IN_JUNE),
            IncomeFactory.build(user_name="Amina", amount=Decimal("5"), created_at=IN_JUNE),
        )
        memory_store.add(Collection.EXPENSES, ExpenseFactory.build(user_name="Omar", amount=Decimal("7"), created_at=IN_JUNE))

        view = await ReportViewBuilder(memory_store).build("hr", STORE_ID, "USD", june_window)

        assert _kpis(view) == {"Total Staff": 2}
        assert view.tables["staffIncomes"] == [{"name": "Amina", "count": 2, "total": Decimal("25.00")}]
        assert view.tables["staffExpenses"] == [{"name": "Omar", "count": 1, "total": Decimal("7.00")}]
