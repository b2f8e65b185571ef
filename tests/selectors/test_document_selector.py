"""Tests for DocumentSelector reads."""

from decimal import Decimal
from uuid import uuid4

import pytest

from retail_kernel.domain.values import DiscountType, DocumentKind
from retail_kernel.exceptions import DocumentNotFoundError, ShopNotFoundError
from retail_kernel.selectors.document_selector import DocumentSelector


class TestGetDocument:

    def test_detail_by_serial(self, orchestrator, session, make_input, seed, customer_input):
        created = orchestrator.create_billing(
            make_input(
                [(seed.hammer_id, 2, 25000), (seed.paint_id, 1, 60000)],
                customer=customer_input,
                discount_type=DiscountType.PERCENTAGE,
                discount=Decimal("10"),
                shipping=Decimal("5000"),
                payment_method="CASH",
            )
        )

        detail = DocumentSelector(session).get_by_serial(DocumentKind.BILLING, created.serial_number)

        assert detail.id == created.id
        assert detail.total == Decimal("104000")
        assert [i.name for i in detail.items] == ["Martillo 16oz", "Pintura Galon blanco"]
        assert [i.position for i in detail.items] == [0, 1]
        assert detail.full_name == "Ana Gomez"
        assert detail.dni == "1020304050"
        assert detail.location == "Calle 10 # 5-20"
        assert detail.city == "Bogota"
        assert detail.payment_method == "CASH"

    def test_anonymous_detail(self, orchestrator, session, make_input, seed):
        created = orchestrator.create_quote(make_input([(seed.drill_id, 1, 180000)]))
        detail = DocumentSelector(session).get_by_id(DocumentKind.QUOTE, created.id)
        assert detail.customer_id is None
        assert detail.full_name is None
        assert detail.effective_date is None

    def test_serial_of_other_kind_not_found(self, orchestrator, session, make_input, seed):
        created = orchestrator.create_quote(make_input([(seed.drill_id, 1, 180000)]))
        with pytest.raises(DocumentNotFoundError):
            DocumentSelector(session).get_by_serial(DocumentKind.BILLING, created.serial_number)

    def test_unknown_id(self, session, seed):
        with pytest.raises(DocumentNotFoundError):
            DocumentSelector(session).get_by_id(DocumentKind.BILLING, uuid4())


class TestListForShop:

    def test_newest_first(self, orchestrator, session, make_input, seed, clock, customer_input):
        first = orchestrator.create_quote(make_input([(seed.hammer_id, 1, 25000)]))
        clock.advance(60)
        second = orchestrator.create_quote(
            make_input([(seed.paint_id, 1, 60000)], customer=customer_input)
        )

        summaries = DocumentSelector(session).list_for_shop(DocumentKind.QUOTE, seed.shop_slug)

        assert [s.id for s in summaries] == [second.id, first.id]
        assert summaries[0].customer_name == "Ana Gomez"
        assert summaries[1].customer_name is None

    def test_only_this_shop(self, orchestrator, session, make_input, seed):
        orchestrator.create_billing(make_input([(seed.hammer_id, 1, "12.50")], shop_slug=seed.usd_shop_slug))
        assert DocumentSelector(session).list_for_shop(DocumentKind.BILLING, seed.shop_slug) == []

    def test_unknown_shop(self, session, seed):
        with pytest.raises(ShopNotFoundError):
            DocumentSelector(session).list_for_shop(DocumentKind.BILLING, "no-such-shop")
