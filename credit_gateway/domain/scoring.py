"""Reputation scoring - the rule the ledger applies to submitted trading metrics"""

from credit_gateway.domain.models import MICRO_UNITS, ScoreBreakdown, TradingMetrics

MAX_SCORE = 1000
ACTIVITY_BASE = 200
VOLUME_STEP_MICRO = 1000 * MICRO_UNITS  # $1000 in micro-units
VOLUME_POINTS_PER_STEP = 50
VOLUME_CAP = 500
POINTS_PER_TRADE = 3
FREQUENCY_CAP = 300


def score_breakdown(metrics: TradingMetrics) -> ScoreBreakdown:
    """
    Split a reputation score into its components.

    Scoring rule:
    - 200 base points for any trading activity (trade_count > 0)
    - 50 points per full $1000 of volume, capped at 500
    - 3 points per trade, capped at 300
    - Total capped at 1000

    Integer arithmetic on micro-units, so floor(volume_usd / 1000) is exact.

    Example:
        $2000 volume, 50 trades → 200 + 100 + 150 = 450
    """
    base = ACTIVITY_BASE if metrics.trade_count > 0 else 0
    volume_component = min(VOLUME_CAP, (metrics.volume // VOLUME_STEP_MICRO) * VOLUME_POINTS_PER_STEP)
    frequency_component = min(FREQUENCY_CAP, metrics.trade_count * POINTS_PER_TRADE)
    total = min(MAX_SCORE, base + volume_component + frequency_component)

    return ScoreBreakdown(
        base=base,
        volume_component=volume_component,
        frequency_component=frequency_component,
        total=total,
    )


def calculate_score(metrics: TradingMetrics) -> int:
    """
    Reputation score in [0, 1000].

    Advisory only: the ledger recomputes the score from submitted metrics and
    its stored value is the one lending decisions use.
    """
    return score_breakdown(metrics).total
