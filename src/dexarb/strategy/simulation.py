"""
Paper-trade simulation of a candidate.

Replays a candidate with random slippage on both legs to estimate what
executing it would actually have returned. Nothing is submitted on-chain.
"""

import random
from dataclasses import dataclass
from typing import Any

from dexarb.config.constants import SIMULATED_EXECUTION_SECONDS, SIMULATED_GAS_ADA
from dexarb.core.types import OpportunityCandidate


@dataclass(slots=True, frozen=True)
class SimulationResult:
    """Outcome of one simulated execution."""

    opportunity_id: str
    success: bool
    actual_profit: float
    buy_slippage_pct: float
    sell_slippage_pct: float
    actual_buy_price: float
    actual_sell_price: float
    gas_estimate: float = SIMULATED_GAS_ADA
    execution_time_seconds: int = SIMULATED_EXECUTION_SECONDS

    def to_dict(self) -> dict[str, Any]:
        """Export as a JSON-friendly dict."""
        return {
            "opportunity_id": self.opportunity_id,
            "success": self.success,
            "actual_profit": self.actual_profit,
            "buy_slippage_pct": self.buy_slippage_pct,
            "sell_slippage_pct": self.sell_slippage_pct,
            "actual_buy_price": self.actual_buy_price,
            "actual_sell_price": self.actual_sell_price,
            "gas_estimate": self.gas_estimate,
            "execution_time_seconds": self.execution_time_seconds,
        }


def simulate_execution(
    candidate: OpportunityCandidate,
    rng: random.Random | None = None,
) -> SimulationResult:
    """
    Simulate executing a candidate.

    Each leg suffers a slippage drawn uniformly from [0, slippage_risk)
    percent: the buy fills higher and the sell fills lower than quoted.

    Args:
        candidate: Candidate to replay.
        rng: Random source. Pass a seeded instance for reproducible runs.

    Returns:
        Simulation result; successful iff the actual profit is positive.
    """
    rng = rng or random.Random()

    buy_slippage = rng.random() * candidate.slippage_risk
    sell_slippage = rng.random() * candidate.slippage_risk

    actual_buy = candidate.buy_price * (1 + buy_slippage / 100)
    actual_sell = candidate.sell_price * (1 - sell_slippage / 100)

    actual_profit = (actual_sell - actual_buy) * candidate.volume_available - candidate.total_fees

    return SimulationResult(
        opportunity_id=candidate.id,
        success=actual_profit > 0,
        actual_profit=actual_profit,
        buy_slippage_pct=buy_slippage,
        sell_slippage_pct=sell_slippage,
        actual_buy_price=actual_buy,
        actual_sell_price=actual_sell,
    )
