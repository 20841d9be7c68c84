"""Pricing Schedule — ступенчатая цена продажи.

price(now) = base_price + price_step_amount * floor((now - sale_start_time) / price_step_interval)

- Монотонно неубывающая функция времени, без верхней границы
- Число шагов всегда отсчитывается от sale_start_time: замена base_price
  сдвигает всю кривую сразу, а не только будущие шаги
- До начала продажи цена не определена (SaleNotStarted)
"""

from src.core.domain.sale_config import SaleConfig
from src.core.errors import SaleNotStarted


class PricingSchedule:
    """Чистая функция времени → цена. Stateless."""

    def steps_elapsed(self, config: SaleConfig, now: int) -> int:
        """Число полных шагов цены с начала продажи."""
        if now < config.sale_start_time:
            raise SaleNotStarted(
                f"sale starts at {config.sale_start_time}, now={now}",
                sale_start_time=config.sale_start_time,
                now=now,
            )
        return (now - config.sale_start_time) // config.price_step_interval

    def current_price(self, config: SaleConfig, now: int) -> int:
        """
        Текущая цена за целый токен (quote units, price_decimals знаков).

        Raises:
            SaleNotStarted: Если now < sale_start_time
        """
        return config.base_price + config.price_step_amount * self.steps_elapsed(config, now)

    def next_step_time(self, config: SaleConfig, now: int) -> int:
        """Момент следующего повышения цены."""
        steps = self.steps_elapsed(config, now)
        return config.sale_start_time + (steps + 1) * config.price_step_interval
