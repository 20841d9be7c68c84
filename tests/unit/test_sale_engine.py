"""Тесты для Sale Engine.

Coverage:
- Порядок проверок (окно → оракул → цена → value → лимиты)
- ValueTooSmall без побочных эффектов
- CapacityExceeded: sale_supply_cap и баланс custody
- Создание позиции и докупка
- Fixed-point расчёт количества токенов
- Неизменность исходного состояния при ошибке
"""

import logging

import pytest

from src.core.domain import SaleConfig, SaleState
from src.core.errors import (
    CapacityExceeded,
    InvalidAttestation,
    SaleEnded,
    SaleNotStarted,
    ValueTooSmall,
)
from src.oracle import StaticPriceVerifier
from src.sale.engine import SaleEngine, tokens_for_value, value_in_quote_units


DAY = 24 * 60 * 60
TOKEN = 10**18
ETHER = 10**18
ATTESTATION = b"proof"


@pytest.fixture
def config():
    return SaleConfig(
        owner="0xowner",
        sale_start_time=7 * DAY,
        sale_duration=9 * DAY,
        vest_duration=30 * DAY,
        base_price=10,
        price_step_interval=3 * DAY,
        price_step_amount=5,
        sale_supply_cap=10_000 * TOKEN,
    )


@pytest.fixture
def state(config):
    return SaleState.initial(config)


@pytest.fixture
def verifier():
    """ETH-USD = 3000 (8 знаков)."""
    return StaticPriceVerifier(3000 * 10**8, decimals=8)


@pytest.fixture
def engine(verifier):
    return SaleEngine(verifier)


# =============================================================================
# РАСЧЁТ КОЛИЧЕСТВА
# =============================================================================


class TestTokensForValue:
    """Тесты fixed-point расчёта."""

    def test_one_ether_at_price_10(self, config):
        assert tokens_for_value(config, ETHER, 3000 * 10**18, 10) == 300 * TOKEN

    def test_floor(self, config):
        assert tokens_for_value(config, ETHER, 3000 * 10**18, 7) == (3000 * TOKEN) // 7

    def test_price_decimals(self, config):
        """price=10 при price_decimals=1 — это 1.0 quote за токен."""
        config = SaleConfig.model_validate({**config.model_dump(), "price_decimals": 1})
        assert tokens_for_value(config, ETHER, 3000 * 10**18, 10) == 3000 * TOKEN

    def test_token_decimals(self, config):
        config = SaleConfig.model_validate({**config.model_dump(), "token_decimals": 6})
        assert tokens_for_value(config, ETHER, 3000 * 10**18, 10) == 300 * 10**6

    def test_dust_rounds_to_zero(self, config):
        assert tokens_for_value(config, 1, 10**18, 10) == 0

    def test_value_floored_to_whole_quote_units(self, config):
        """0.0001 ETH при ETH=3000 стоит 0.3 quote unit: при price_decimals=0 это 0."""
        assert value_in_quote_units(config, ETHER // 10_000, 3000 * 10**18) == 0
        assert tokens_for_value(config, ETHER // 10_000, 3000 * 10**18, 10) == 0

        finer = SaleConfig.model_validate({**config.model_dump(), "price_decimals": 1})
        assert value_in_quote_units(finer, ETHER // 10_000, 3000 * 10**18) == 3
        assert tokens_for_value(finer, ETHER // 10_000, 3000 * 10**18, 10) == 3 * TOKEN // 10

    def test_product_above_uint256_allowed(self, config):
        """Промежуточное произведение больше uint256, результат в пределах."""
        config = SaleConfig.model_validate(
            {**config.model_dump(), "price_decimals": 18, "base_price": 10 * 10**18}
        )
        assert tokens_for_value(config, 100 * ETHER, 3000 * 10**18, 10 * 10**18) == 30_000 * TOKEN


# =============================================================================
# ПОРЯДОК ПРОВЕРОК
# =============================================================================


class TestPurchasePreconditions:
    """Тесты предусловий покупки."""

    def test_before_start(self, engine, verifier, state):
        with pytest.raises(SaleNotStarted):
            engine.purchase(state, "0xa", ATTESTATION, ETHER, now=7 * DAY - 1)
        # Оракул не вызывается до проверки окна
        assert verifier.calls == 0

    def test_before_start_wins_over_bad_attestation(self, state):
        engine = SaleEngine(StaticPriceVerifier(1, accept=False))
        with pytest.raises(SaleNotStarted):
            engine.purchase(state, "0xa", ATTESTATION, 0, now=0)

    def test_after_end(self, engine, state):
        with pytest.raises(SaleEnded):
            engine.purchase(state, "0xa", ATTESTATION, ETHER, now=16 * DAY)

    def test_last_second_of_window_accepted(self, engine, state):
        result = engine.purchase(state, "0xa", ATTESTATION, ETHER, now=16 * DAY - 1)
        assert result.tokens_allocated > 0

    def test_invalid_attestation(self, state):
        engine = SaleEngine(StaticPriceVerifier(1, accept=False))
        with pytest.raises(InvalidAttestation):
            engine.purchase(state, "0xa", ATTESTATION, ETHER, now=7 * DAY)

    def test_attestation_checked_before_value(self, state):
        engine = SaleEngine(StaticPriceVerifier(1, accept=False))
        with pytest.raises(InvalidAttestation):
            engine.purchase(state, "0xa", ATTESTATION, 0, now=7 * DAY)

    def test_value_too_small_no_side_effects(self, state):
        """Value, дающий 0 токенов: ошибка, позиция не создана, total_buys не изменён."""
        engine = SaleEngine(StaticPriceVerifier(1, decimals=0))

        with pytest.raises(ValueTooSmall):
            engine.purchase(state, "0xa", ATTESTATION, 1, now=7 * DAY)

        assert state.positions == {}
        assert state.ledger.total_buys == 0

    def test_one_wei_too_small(self, engine, state):
        with pytest.raises(ValueTooSmall):
            engine.purchase(state, "0xa", ATTESTATION, 1, now=7 * DAY)

    def test_zero_value(self, engine, state):
        with pytest.raises(ValueTooSmall):
            engine.purchase(state, "0xa", ATTESTATION, 0, now=7 * DAY)

    def test_negative_value_rejected(self, engine, state):
        with pytest.raises(ValueError):
            engine.purchase(state, "0xa", ATTESTATION, -1, now=7 * DAY)

    def test_capacity_exceeded_no_partial_allocation(self, engine, config):
        small = SaleConfig.model_validate({**config.model_dump(), "sale_supply_cap": 500 * TOKEN})
        state = SaleState.initial(small)

        state = engine.purchase(state, "0xa", ATTESTATION, ETHER, now=7 * DAY).new_state
        assert state.ledger.total_buys == 300 * TOKEN

        with pytest.raises(CapacityExceeded):
            engine.purchase(state, "0xb", ATTESTATION, ETHER, now=7 * DAY)

        assert state.ledger.total_buys == 300 * TOKEN
        assert "0xb" not in state.positions

    def test_capacity_exactly_filled(self, engine, config):
        exact = SaleConfig.model_validate({**config.model_dump(), "sale_supply_cap": 300 * TOKEN})
        result = engine.purchase(SaleState.initial(exact), "0xa", ATTESTATION, ETHER, now=7 * DAY)

        assert result.new_state.ledger.total_buys == exact.sale_supply_cap

    def test_custody_balance_limits_purchase(self, engine, state):
        """Без пополнения custody купить нечего."""
        with pytest.raises(CapacityExceeded, match="custody"):
            engine.purchase(state, "0xa", ATTESTATION, ETHER, now=7 * DAY, custody_balance=0)

        result = engine.purchase(
            state, "0xa", ATTESTATION, ETHER, now=7 * DAY, custody_balance=300 * TOKEN
        )
        assert result.tokens_allocated == 300 * TOKEN


# =============================================================================
# УСПЕШНЫЕ ПОКУПКИ
# =============================================================================


class TestPurchase:
    """Тесты успешных покупок."""

    def test_first_purchase(self, engine, state):
        result = engine.purchase(state, "0xA", ATTESTATION, ETHER, now=7 * DAY)

        assert result.buyer == "0xa"
        assert result.tokens_allocated == 300 * TOKEN
        assert result.price == 10
        assert result.reference_price_wad == 3000 * 10**18
        assert result.position_created

        new_state = result.new_state
        assert new_state.ledger.total_buys == 300 * TOKEN
        assert new_state.ledger.total_raised == ETHER
        assert new_state.positions["0xa"].purchased_total == 300 * TOKEN
        assert new_state.positions["0xa"].opened_at == 7 * DAY

        # Исходный снапшот не изменился
        assert state.ledger.total_buys == 0

    def test_top_up_at_higher_price(self, engine, state):
        state = engine.purchase(state, "0xa", ATTESTATION, ETHER, now=7 * DAY).new_state
        result = engine.purchase(state, "0xa", ATTESTATION, ETHER, now=10 * DAY)

        assert not result.position_created
        assert result.price == 15
        assert result.tokens_allocated == 200 * TOKEN
        assert len(result.new_state.positions) == 1
        assert result.new_state.positions["0xa"].purchased_total == 500 * TOKEN

    def test_not_idempotent(self, engine, state):
        first = engine.purchase(state, "0xa", ATTESTATION, ETHER, now=7 * DAY)
        second = engine.purchase(first.new_state, "0xa", ATTESTATION, ETHER, now=7 * DAY)

        assert second.new_state.ledger.total_buys == 2 * first.tokens_allocated
        assert second.new_state.ledger.total_raised == 2 * ETHER

    def test_rebased_price_used(self, engine, state):
        state = state.replace(config=state.config.with_base_price(20))
        result = engine.purchase(state, "0xa", ATTESTATION, ETHER, now=7 * DAY)

        assert result.price == 20
        assert result.tokens_allocated == 150 * TOKEN

    def test_large_purchase_with_18_decimal_price(self, engine, config):
        config = SaleConfig.model_validate(
            {
                **config.model_dump(),
                "price_decimals": 18,
                "base_price": 10 * 10**18,
                "price_step_amount": 5 * 10**18,
                "sale_supply_cap": 100_000 * TOKEN,
            }
        )

        result = engine.purchase(
            SaleState.initial(config), "0xa", ATTESTATION, 100 * ETHER, now=7 * DAY
        )

        assert result.price == 10 * 10**18
        assert result.tokens_allocated == 30_000 * TOKEN

    def test_quote(self, engine, verifier, state):
        reading = verifier.verify(ATTESTATION)
        assert engine.quote(state, 2 * ETHER, reading, now=13 * DAY) == 300 * TOKEN

    def test_total_buys_never_exceeds_cap(self, engine, config):
        capped = SaleConfig.model_validate({**config.model_dump(), "sale_supply_cap": 1000 * TOKEN})
        state = SaleState.initial(capped)
        history = []

        for i in range(10):
            try:
                state = engine.purchase(state, f"0x{i}", ATTESTATION, ETHER, now=7 * DAY).new_state
            except CapacityExceeded:
                pass
            history.append(state.ledger.total_buys)

        assert history == sorted(history)
        assert max(history) <= capped.sale_supply_cap
        assert len(state.positions) == 3

    def test_rejection_logged(self, engine, state, caplog):
        with caplog.at_level(logging.WARNING, logger="src.sale.engine"):
            with pytest.raises(SaleNotStarted):
                engine.purchase(state, "0xa", ATTESTATION, ETHER, now=0)

        assert "sale_not_started" in caplog.text
