"""
Tests for SalesReportSelector.

Scenario (clock at 2024-01-15, moved to the month of the March and
December sales while they are created):
    Jan 2024  PAID      hammer 2 x 25000 + paint 1 x 60000, 10% off, 5000 shipping
    Jan 2024  PAID      paint 4 x 60000 + freight 3 x 15000
    Jan 2024  PENDING   drill 1 x 180000                 (not paid: excluded)
    Jan 2024  CANCELED  hammer 1 x 25000                 (excluded)
    Jan 2024  PAID USD  hammer 2 x 12.50
    Mar 2024  PAID      paint 3 x 60000, 30000 off
    Dec 2023  PAID      hammer 1 x 25000
"""

from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from retail_kernel.config import BackofficeConfig
from retail_kernel.domain.values import DiscountType
from retail_kernel.models.catalog import ProductVariant
from retail_kernel.selectors.sales_report_selector import SalesReportSelector, shift_month


@pytest.fixture
def sales(orchestrator, make_input, seed, clock):
    orchestrator.create_billing(
        make_input(
            [(seed.hammer_id, 2, 25000), (seed.paint_id, 1, 60000)],
            discount_type=DiscountType.PERCENTAGE,
            discount=Decimal("10"),
            shipping=Decimal("5000"),
            status="PAID",
        )
    )
    orchestrator.create_billing(
        make_input([(seed.paint_id, 4, 60000), (seed.freight_id, 3, 15000)], status="PAID")
    )
    orchestrator.create_billing(make_input([(seed.drill_id, 1, 180000)]))
    canceled = orchestrator.create_billing(make_input([(seed.hammer_id, 1, 25000)], status="PAID"))
    orchestrator.cancel_billing(canceled.id)
    orchestrator.create_billing(
        make_input([(seed.hammer_id, 2, "12.50")], shop_slug=seed.usd_shop_slug, status="PAID")
    )
    clock.set_time(datetime(2024, 3, 5, 10, 0, tzinfo=timezone.utc))
    orchestrator.create_billing(
        make_input(
            [(seed.paint_id, 3, 60000)],
            discount_type=DiscountType.FIXED,
            discount=Decimal("30000"),
            status="PAID",
        )
    )
    clock.set_time(datetime(2023, 12, 20, 10, 0, tzinfo=timezone.utc))
    orchestrator.create_billing(make_input([(seed.hammer_id, 1, 25000)], status="PAID"))
    clock.set_time(datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc))
    return seed


class TestShiftMonth:

    def test_same_month(self):
        assert shift_month(2024, 1, 0) == (2024, 1)

    def test_back_across_year(self):
        assert shift_month(2024, 1, -1) == (2023, 12)

    def test_forward_across_year(self):
        assert shift_month(2024, 11, 3) == (2025, 2)


class TestMonthlySales:

    def test_months_with_sales_only(self, session, config, clock, sales):
        rows = SalesReportSelector(session, config, clock).monthly_sales()
        assert [r.month for r in rows] == [1, 3]
        assert [r.month_name for r in rows] == ["January", "March"]

    def test_discounted_amounts_per_currency(self, session, config, clock, sales):
        january, march = SalesReportSelector(session, config, clock).monthly_sales(2024)

        # 99000 (discounted, shipping excluded) + 285000
        assert january.amounts["COP"] == Decimal("384000.00")
        assert january.amounts["USD"] == Decimal("25.00")
        assert march.amounts["COP"] == Decimal("150000.00")
        assert march.amounts["USD"] == Decimal("0.00")

    def test_other_year(self, session, config, clock, sales):
        rows = SalesReportSelector(session, config, clock).monthly_sales(2023)
        assert len(rows) == 1
        assert rows[0].month == 12
        assert rows[0].amounts["COP"] == Decimal("25000.00")

    def test_deleted_variants_excluded(self, session, config, clock, sales):
        variant = session.get(ProductVariant, sales.paint_id)
        variant.deleted_at = datetime(2024, 1, 20, tzinfo=timezone.utc)
        session.commit()

        rows = SalesReportSelector(session, config, clock).monthly_sales(2024)
        # Only the hammer share (45000) and the freight (45000) remain in January
        assert [r.month for r in rows] == [1]
        assert rows[0].amounts["COP"] == Decimal("90000.00")

    def test_no_sales(self, session, config, clock, seed):
        assert SalesReportSelector(session, config, clock).monthly_sales(2024) == []

    def test_grouped_by_creation_month(self, session, config, clock, orchestrator, make_input, seed):
        """A billing dated into February still counts for the month it was created."""
        orchestrator.create_billing(
            make_input([(seed.hammer_id, 1, 25000)], status="PAID", effective_date=date(2024, 2, 10))
        )
        selector = SalesReportSelector(session, config, clock)

        rows = selector.monthly_sales(2024)

        assert [r.month for r in rows] == [1]
        assert rows[0].amounts["COP"] == Decimal("25000.00")
        assert selector.top_selling_groups().by_currency["COP"] == ()
        assert selector.top_selling_groups(offset=1).by_currency["COP"][0].group_name == "Herramientas"


class TestTopSellingGroups:

    def test_current_month(self, session, config, clock, sales):
        report = SalesReportSelector(session, config, clock).top_selling_groups()

        assert (report.year, report.month) == (2024, 1)
        cop = report.by_currency["COP"]
        assert [g.group_name for g in cop] == ["Pinturas", "Herramientas"]
        assert [g.quantity for g in cop] == [Decimal("5"), Decimal("2")]
        assert cop[0].group_id == sales.paint_group_id

    def test_freight_excluded(self, session, config, clock, sales):
        report = SalesReportSelector(session, config, clock).top_selling_groups()
        names = {g.group_name for g in report.by_currency["COP"]}
        assert "Servicios" not in names

    def test_per_currency(self, session, config, clock, sales):
        report = SalesReportSelector(session, config, clock).top_selling_groups()
        usd = report.by_currency["USD"]
        assert [(g.group_name, g.quantity) for g in usd] == [("Herramientas", Decimal("2"))]

    def test_previous_month(self, session, config, clock, sales):
        report = SalesReportSelector(session, config, clock).top_selling_groups(offset=-1)
        assert (report.year, report.month) == (2023, 12)
        assert [(g.group_name, g.quantity) for g in report.by_currency["COP"]] == [
            ("Herramientas", Decimal("1"))
        ]
        assert report.by_currency["USD"] == ()

    def test_limit(self, session, clock, sales):
        config = BackofficeConfig(database_url="sqlite://", top_sales_limit=1)
        report = SalesReportSelector(session, config, clock).top_selling_groups()
        assert len(report.by_currency["COP"]) == 1
