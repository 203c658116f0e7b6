"""Tests for transfer candidate search.

GIVEN: A source line item and activity in the caller's other accounts
WHEN: Looking for link candidates
THEN: Only unlinked items inside the date and amount window are offered, closest first
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from ledger_match.services.errors import NotFoundError
from ledger_match.services.link_candidates import amount_window, find_link_candidates
from ledger_match.services.linking import create_link
from tests.factories import AccountFactory, LineItemFactory, link


@pytest.fixture
async def setup(db, user_id):
    checking = await AccountFactory.create_async(db, user_id=user_id, name="Checking")
    savings = await AccountFactory.create_async(db, user_id=user_id, name="Savings")
    source = await LineItemFactory.create_async(
        db, account_id=checking.id, date=date(2024, 3, 10), amount=Decimal("-100.00")
    )
    return checking, savings, source


class TestAmountWindow:
    def test_window_is_symmetric_on_absolute_amount(self):
        assert amount_window(Decimal("-100.00"), Decimal("0.05")) == (Decimal("95.0000"), Decimal("105.0000"))


class TestFindLinkCandidates:
    async def test_window_and_ranking(self, db, user_id, setup):
        """GIVEN: Items at various dates and amounts in another account
        WHEN: Searching candidates for a -100.00 source
        THEN: Items within 7 days and 5% come back ordered by amount distance then date"""
        checking, savings, source = setup
        exact_late = await LineItemFactory.create_async(
            db, account_id=savings.id, date=date(2024, 3, 15), amount=Decimal("100.00")
        )
        exact_early = await LineItemFactory.create_async(
            db, account_id=savings.id, date=date(2024, 3, 9), amount=Decimal("100.00")
        )
        edge_low = await LineItemFactory.create_async(
            db, account_id=savings.id, date=date(2024, 3, 3), amount=Decimal("95.00")
        )
        near = await LineItemFactory.create_async(
            db, account_id=savings.id, date=date(2024, 3, 17), amount=Decimal("-102.00")
        )
        # outside the window on each axis
        await LineItemFactory.create_async(db, account_id=savings.id, date=date(2024, 3, 2), amount=Decimal("100.00"))
        await LineItemFactory.create_async(db, account_id=savings.id, date=date(2024, 3, 18), amount=Decimal("100.00"))
        await LineItemFactory.create_async(db, account_id=savings.id, date=date(2024, 3, 10), amount=Decimal("94.99"))
        await LineItemFactory.create_async(db, account_id=savings.id, date=date(2024, 3, 10), amount=Decimal("105.01"))

        result = await find_link_candidates(db, user_id, source.id)

        assert [c.line_item.id for c in result.matches] == [exact_early.id, exact_late.id, near.id, edge_low.id]
        assert result.matches[2].amount_difference == Decimal("2.00")
        assert {c.account_name for c in result.matches} == {"Savings"}
        assert result.linked_amount == Decimal("0")
        assert result.linking_allowed is True

    async def test_excludes_same_account_and_other_users(self, db, user_id, setup):
        checking, savings, source = setup
        await LineItemFactory.create_async(db, account_id=checking.id, date=date(2024, 3, 11), amount=Decimal("100.00"))
        stranger = await AccountFactory.create_async(db, user_id=uuid4())
        await LineItemFactory.create_async(db, account_id=stranger.id, date=date(2024, 3, 11), amount=Decimal("100.00"))

        result = await find_link_candidates(db, user_id, source.id)

        assert result.matches == []

    async def test_excludes_items_already_linked(self, db, user_id, setup):
        """GIVEN: One candidate already a child and another already a parent
        WHEN: Searching
        THEN: Neither is offered, but a soft-deleted link does not exclude"""
        checking, savings, source = setup
        other = await AccountFactory.create_async(db, user_id=user_id, name="Brokerage")
        as_child = await LineItemFactory.create_async(
            db, account_id=savings.id, date=date(2024, 3, 11), amount=Decimal("100.00")
        )
        as_parent = await LineItemFactory.create_async(
            db, account_id=savings.id, date=date(2024, 3, 12), amount=Decimal("100.00")
        )
        unlinked = await LineItemFactory.create_async(
            db, account_id=savings.id, date=date(2024, 3, 13), amount=Decimal("100.00")
        )
        far_parent = await LineItemFactory.create_async(
            db, account_id=other.id, date=date(2024, 1, 1), amount=Decimal("-1000.00")
        )
        far_child = await LineItemFactory.create_async(
            db, account_id=other.id, date=date(2024, 6, 1), amount=Decimal("10.00")
        )
        await link(db, far_parent, as_child)
        await link(db, as_parent, far_child)
        await link(db, far_parent, unlinked, deleted=True)

        result = await find_link_candidates(db, user_id, source.id)

        assert [c.line_item.id for c in result.matches] == [unlinked.id]

    async def test_reports_linked_amount_of_source(self, db, user_id, setup):
        checking, savings, source = setup
        child = await LineItemFactory.create_async(
            db, account_id=savings.id, date=date(2024, 3, 20), amount=Decimal("60.00")
        )
        await create_link(db, user_id, source.id, child.id)

        result = await find_link_candidates(db, user_id, source.id)

        assert result.linked_amount == Decimal("60.00")
        assert result.linking_allowed is True

    async def test_limit(self, db, user_id, setup):
        checking, savings, source = setup
        for day in range(5, 15):
            await LineItemFactory.create_async(
                db, account_id=savings.id, date=date(2024, 3, day), amount=Decimal("100.00")
            )

        result = await find_link_candidates(db, user_id, source.id, limit=3)

        assert [c.line_item.date.day for c in result.matches] == [5, 6, 7]

    async def test_unknown_source_is_not_found(self, db, user_id, setup):
        with pytest.raises(NotFoundError):
            await find_link_candidates(db, user_id, 999_999)
