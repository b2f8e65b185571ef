"""
Module: retail_kernel.selectors.sales_report_selector
Responsibility: Dashboard reports computed from PAID billings: monthly
    discount-aware sales per currency, and the best-selling product
    category groups of a month.
Architecture position: Kernel > Selectors.  Read-only.

Invariants enforced:
    - Only billings in status PAID count.
    - Monthly sales place a billing in the month it was created; top sales
      use its effective_date, so a billing dated into another month moves
      between top-sales months but not between monthly totals.
    - Monthly sales apply the billing's discount to each line with
      discount_share(), so a month's amount equals the sum of the
      discounted bases of its billings (shipping excluded).
    - Lines of soft-deleted product variants are left out of monthly sales.
    - Freight lines (name matching report_excluded_item_pattern) are left
      out of top sales.
"""

import calendar
from collections import defaultdict
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import func, select

from retail_kernel.config import BackofficeConfig
from retail_kernel.db.types import ZERO, Currency, round_money
from retail_kernel.domain.clock import Clock, SystemClock
from retail_kernel.domain.dtos import MonthlySales, TopSalesGroup, TopSalesReport
from retail_kernel.domain.totals import discount_share
from retail_kernel.domain.workflows import BillingStatus
from retail_kernel.models.billing import Billing, BillingItem
from retail_kernel.models.catalog import (
    Product,
    ProductCategory,
    ProductCategoryGroup,
    ProductVariant,
)
from retail_kernel.selectors.base import BaseSelector

MONTH_NAMES = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)


def shift_month(year: int, month: int, offset: int) -> tuple[int, int]:
    """(year, month) offset months away; negative offsets go back."""
    index = year * 12 + (month - 1) + offset
    shifted_year, shifted_month = divmod(index, 12)
    return shifted_year, shifted_month + 1


class SalesReportSelector(BaseSelector):

    def __init__(self, session, config: BackofficeConfig | None = None, clock: Clock | None = None):
        super().__init__(session)
        self._config = config or BackofficeConfig.with_defaults()
        self._clock = clock or SystemClock()

    def monthly_sales(self, year: int | None = None) -> list[MonthlySales]:
        """
        Paid sales per month of year (default: the current year), by the
        month each billing was created.

        Only months with sales are returned, in calendar order; every
        supported currency appears in each month, zero when absent.
        """
        year = year or self._clock.today().year
        rows = self.session.execute(
            select(
                Billing.created_at,
                Billing.discount_type,
                Billing.discount,
                Billing.subtotal,
                BillingItem.currency,
                BillingItem.total_price,
            )
            .join(BillingItem, BillingItem.billing_id == Billing.id)
            .join(ProductVariant, BillingItem.product_variant_id == ProductVariant.id)
            .where(
                Billing.status == BillingStatus.PAID.value,
                Billing.created_at >= datetime(year, 1, 1, tzinfo=timezone.utc),
                Billing.created_at < datetime(year + 1, 1, 1, tzinfo=timezone.utc),
                ProductVariant.deleted_at.is_(None),
            )
        ).all()

        sums: dict[int, dict[str, Decimal]] = defaultdict(lambda: defaultdict(lambda: ZERO))
        for created_at, discount_type, discount, subtotal, currency, total_price in rows:
            sums[created_at.month][currency] += discount_share(
                Decimal(str(total_price)),
                Decimal(str(subtotal)),
                discount_type,
                Decimal(str(discount)),
            )

        return [
            MonthlySales(
                month=month,
                month_name=MONTH_NAMES[month - 1],
                amounts={
                    c.value: round_money(sums[month].get(c.value, ZERO)) for c in Currency
                },
            )
            for month in sorted(sums)
        ]

    def top_selling_groups(self, offset: int = 0) -> TopSalesReport:
        """
        Best-selling product category groups, by summed quantity, for the
        month offset months from the current one (0 = this month, -1 = the
        previous one).  At most top_sales_limit groups per currency.
        """
        today = self._clock.today()
        year, month = shift_month(today.year, today.month, offset)
        start = date(year, month, 1)
        end = date(year, month, calendar.monthrange(year, month)[1])

        by_currency: dict[str, tuple[TopSalesGroup, ...]] = {}
        for currency in Currency:
            by_currency[currency.value] = self._top_groups(currency.value, start, end)

        return TopSalesReport(year=year, month=month, by_currency=by_currency)

    def _top_groups(self, currency: str, start: date, end: date) -> tuple[TopSalesGroup, ...]:
        total_quantity = func.sum(BillingItem.quantity)
        rows = self.session.execute(
            select(
                ProductCategoryGroup.id,
                ProductCategoryGroup.name,
                total_quantity.label("total_quantity"),
            )
            .select_from(BillingItem)
            .join(Billing, BillingItem.billing_id == Billing.id)
            .join(ProductVariant, BillingItem.product_variant_id == ProductVariant.id)
            .join(Product, ProductVariant.product_id == Product.id)
            .join(ProductCategory, Product.product_category_id == ProductCategory.id)
            .join(
                ProductCategoryGroup,
                ProductCategory.product_category_group_id == ProductCategoryGroup.id,
            )
            .where(
                BillingItem.currency == currency,
                ~BillingItem.name.ilike(self._config.report_excluded_item_pattern),
                Billing.status == BillingStatus.PAID.value,
                Billing.effective_date >= start,
                Billing.effective_date <= end,
            )
            .group_by(ProductCategoryGroup.id, ProductCategoryGroup.name)
            .order_by(total_quantity.desc(), ProductCategoryGroup.name)
            .limit(self._config.top_sales_limit)
        ).all()

        return tuple(
            TopSalesGroup(
                group_id=group_id,
                group_name=group_name,
                currency=currency,
                quantity=Decimal(str(quantity)),
            )
            for group_id, group_name, quantity in rows
        )
