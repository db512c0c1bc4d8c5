"""Strategy module for market data normalization, detection and ranking."""

from dexarb.strategy.fees import FeeModel
from dexarb.strategy.normalizer import MarketDataNormalizer, canonicalize_pair
from dexarb.strategy.opportunity import OpportunityDetector
from dexarb.strategy.ranking import RankingFilter
from dexarb.strategy.simulation import SimulationResult, simulate_execution


__all__ = [
    "FeeModel",
    "MarketDataNormalizer",
    "OpportunityDetector",
    "RankingFilter",
    "SimulationResult",
    "canonicalize_pair",
    "simulate_execution",
]
