"""Тесты для Admin Controls.

Coverage:
- set_base_price: только владелец, мгновенный rebase
- recover_excess: только владелец, только после конца продажи,
  ровно custody - total_buys, повторный вызов → 0
"""

import pytest

from src.core.domain import SaleConfig, SaleLedger, SaleState
from src.core.errors import SaleStillActive, Unauthorized
from src.sale.admin import AdminControls
from src.sale.pricing import PricingSchedule


DAY = 24 * 60 * 60
TOKEN = 10**18
SALE_END = 16 * DAY


@pytest.fixture
def admin():
    return AdminControls()


@pytest.fixture
def state():
    config = SaleConfig(
        owner="0xOwner",
        sale_start_time=7 * DAY,
        sale_duration=9 * DAY,
        vest_duration=30 * DAY,
        base_price=9,
        price_step_interval=3 * DAY,
        price_step_amount=5,
        sale_supply_cap=10_000 * TOKEN,
    )
    return SaleState(config=config, ledger=SaleLedger(total_buys=1_400 * TOKEN))


class TestSetBasePrice:
    """Тесты set_base_price."""

    def test_owner_sets_price(self, admin, state):
        new_state = admin.set_base_price(state, "0xowner", 10)

        assert new_state.config.base_price == 10
        assert state.config.base_price == 9
        assert PricingSchedule().current_price(new_state.config, 7 * DAY) == 10

    def test_owner_check_case_insensitive(self, admin, state):
        assert admin.set_base_price(state, "0XOWNER", 11).config.base_price == 11

    def test_non_owner_rejected(self, admin, state):
        with pytest.raises(Unauthorized):
            admin.set_base_price(state, "0xuser1", 10)

    def test_unauthorized_checked_before_value(self, admin, state):
        with pytest.raises(Unauthorized):
            admin.set_base_price(state, "0xuser1", 0)

    def test_zero_price_rejected(self, admin, state):
        with pytest.raises(ValueError):
            admin.set_base_price(state, "0xowner", 0)

    def test_ledger_and_positions_preserved(self, admin, state):
        new_state = admin.set_base_price(state, "0xowner", 10)
        assert new_state.ledger == state.ledger
        assert new_state.positions == state.positions


class TestRecoverExcess:
    """Тесты recover_excess."""

    def test_during_sale_rejected(self, admin, state):
        with pytest.raises(SaleStillActive):
            admin.recover_excess(state, "0xowner", "0xuser3", 10_000 * TOKEN, SALE_END - 1)

    def test_non_owner_rejected_even_after_sale(self, admin, state):
        with pytest.raises(Unauthorized):
            admin.recover_excess(state, "0xuser1", "0xuser1", 10_000 * TOKEN, SALE_END)

    def test_non_owner_rejected_during_sale(self, admin, state):
        with pytest.raises(Unauthorized):
            admin.recover_excess(state, "0xuser1", "0xuser1", 10_000 * TOKEN, 8 * DAY)

    def test_amount_is_custody_minus_total_buys(self, admin, state):
        result = admin.recover_excess(state, "0xowner", "0xUser3", 10_000 * TOKEN, SALE_END)

        assert result.recipient == "0xuser3"
        assert result.amount == 8_600 * TOKEN
        assert result.custody_balance_before == 10_000 * TOKEN
        assert result.total_buys == 1_400 * TOKEN

    def test_second_call_is_zero(self, admin, state):
        """После первого вывода custody == total_buys."""
        result = admin.recover_excess(state, "0xowner", "0xuser3", 1_400 * TOKEN, SALE_END + DAY)
        assert result.amount == 0

    def test_custody_below_total_buys_is_zero(self, admin, state):
        result = admin.recover_excess(state, "0xowner", "0xuser3", 100 * TOKEN, SALE_END)
        assert result.amount == 0
