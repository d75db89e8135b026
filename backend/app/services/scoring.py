from __future__ import annotations

import math

HIGH_CONFIDENCE_SCORE = 75
MEDIUM_CONFIDENCE_SCORE = 55

SCORE_WEIGHTS: dict[str, float] = {
    "edge_size": 0.3,
    "speed": 0.2,
    "persistence": 0.2,
    "market_stability": 0.1,
    "historical_performance": 0.2,
}


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp_score(value: float) -> int:
    return max(0, min(100, round_half_up(value)))


def compute_signal_score(
    edge_size: float,
    speed: float,
    persistence: float,
    market_stability: float,
    historical_performance: float,
) -> int:
    raw = (
        SCORE_WEIGHTS["edge_size"] * float(edge_size)
        + SCORE_WEIGHTS["speed"] * float(speed)
        + SCORE_WEIGHTS["persistence"] * float(persistence)
        + SCORE_WEIGHTS["market_stability"] * float(market_stability)
        + SCORE_WEIGHTS["historical_performance"] * float(historical_performance)
    )
    return clamp_score(raw)


def market_signal_score(volatility: float, edge: float, noise: float) -> int:
    """Score for a generated signal; ``noise`` is a uniform draw in [0, 1)."""
    return min(100, round_half_up(volatility * 40 + edge * 5 + noise * 20))


def consensus_odds(implied: float) -> int:
    """American odds quoted for a consensus implied probability around even money."""
    return round_half_up(-110 + (implied - 0.5) * 100)


def confidence_bucket(score: float) -> str:
    if score > HIGH_CONFIDENCE_SCORE:
        return "high"
    if score > MEDIUM_CONFIDENCE_SCORE:
        return "medium"
    return "low"


def min_score_for_confidence(level: str | None) -> int:
    # Feed filter threshold, compared with >= (a 75 passes "high" but buckets as medium).
    if level == "high":
        return HIGH_CONFIDENCE_SCORE
    if level == "medium":
        return MEDIUM_CONFIDENCE_SCORE
    return 0


def risk_label(volatility: float) -> str:
    if volatility > 0.7:
        return "high"
    if volatility > 0.4:
        return "medium"
    return "low"


def volatility_label(volatility: float) -> str:
    if volatility > 0.7:
        return "extreme"
    if volatility > 0.5:
        return "high"
    return "normal"


def format_american_odds(odds: int) -> str:
    return f"+{odds}" if odds > 0 else str(odds)
