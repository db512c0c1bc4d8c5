"""
Viability filtering and ranking of opportunity candidates.
"""

from collections.abc import Iterable

from dexarb.config.constants import CONFIDENCE_RANK_MULTIPLIER
from dexarb.core.types import Confidence, OpportunityCandidate, ScanThresholds


class RankingFilter:
    """
    Keeps viable candidates and orders them for presentation.

    Ordering is by confidence weight first, then net profit. Python's
    sort is stable, so equal scores keep their discovery order and
    repeated runs over the same input give the same result.
    """

    __slots__ = ("_thresholds",)

    def __init__(self, thresholds: ScanThresholds | None = None) -> None:
        self._thresholds = thresholds or ScanThresholds()

    def is_viable(self, candidate: OpportunityCandidate) -> bool:
        """
        Check the viability predicate.

        Profit percentage and volume are inclusive lower bounds, slippage
        an inclusive upper bound, and net profit a strict lower bound.
        LOW confidence never passes.
        """
        t = self._thresholds
        return (
            candidate.net_profit_pct >= t.min_net_profit_pct
            and candidate.volume_available >= t.min_volume
            and candidate.slippage_risk <= t.max_slippage_risk
            and candidate.net_profit > t.min_net_profit
            and candidate.confidence != Confidence.LOW
        )

    @staticmethod
    def rank_score(candidate: OpportunityCandidate) -> float:
        """Sort key: confidence weight * 1000 + net profit."""
        return candidate.confidence.weight * CONFIDENCE_RANK_MULTIPLIER + candidate.net_profit

    def rank(self, candidates: Iterable[OpportunityCandidate]) -> list[OpportunityCandidate]:
        """
        Filter, sort descending by rank score and truncate.

        Args:
            candidates: Candidates from the detector.

        Returns:
            At most `max_results` viable candidates, best first.
        """
        viable = [c for c in candidates if self.is_viable(c)]
        viable.sort(key=self.rank_score, reverse=True)
        return viable[: self._thresholds.max_results]

    @property
    def thresholds(self) -> ScanThresholds:
        """Get ranking thresholds."""
        return self._thresholds
