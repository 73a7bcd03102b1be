"""Buy/sell/hold decision from the live price and the latest strategy record.

Notification delivery is handled elsewhere; this module only reads the
stored records and produces the decision payload.
"""

from dataclasses import dataclass
from enum import Enum

from kimp.series.models import StrategyRecord, ThresholdRecord


class Action(str, Enum):
    """Recommended action for the domestic market."""

    BUY = "buy"
    SELL = "sell"
    HOLD = "hold"


@dataclass
class MonitoringDecision:
    """Everything the notifier needs to describe the current state."""

    price: float
    action: Action
    strategy_date: str | None
    buy_price: float | None
    sell_price: float | None
    premium_date: str | None = None
    premium: float | None = None
    threshold: ThresholdRecord | None = None

    def to_dict(self) -> dict:
        return {
            "price": self.price,
            "action": self.action.value,
            "strategyDate": self.strategy_date,
            "buyPrice": self.buy_price,
            "sellPrice": self.sell_price,
            "premiumDate": self.premium_date,
            "premium": self.premium,
            "threshold": self.threshold.to_dict() if self.threshold else None,
        }


def latest_strategy(history: list[StrategyRecord]) -> StrategyRecord | None:
    """Record with the greatest analysis_date, regardless of list position."""
    dated = [record for record in history if record.analysis_date]
    if not dated:
        return None
    return max(dated, key=lambda record: record.analysis_date)


def decide_action(price: float, strategy: StrategyRecord) -> Action:
    """Below the buy price -> BUY, above the sell price -> SELL, else HOLD.

    A record missing either price (e.g. an unparsed LLM reply) never
    triggers on that side.
    """
    if strategy.buy_price is not None and price < strategy.buy_price:
        return Action.BUY
    if strategy.sell_price is not None and price > strategy.sell_price:
        return Action.SELL
    return Action.HOLD
