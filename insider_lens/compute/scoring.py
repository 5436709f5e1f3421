from __future__ import annotations

import math
from typing import List, Sequence

from insider_lens.models import ConfidenceResult, ConfidenceSignal, ProcessedTrade


BASE_SCORE = 50

CLUSTER_BUY_POINTS = 30
CLUSTER_BUY_MIN_INSIDERS = 3
EXECUTIVE_POINTS = 20
EXECUTIVE_MARKERS = ("CEO", "CFO", "CHIEF")
SKIN_IN_THE_GAME_POINTS = 15
SKIN_IN_THE_GAME_MIN_PCT = 10.0
SALE_PENALTY_POINTS = 20

LABEL_CAUTION = "Caution"
LABEL_NEUTRAL = "Neutral"
LABEL_HIGH = "High Confidence"


def round_half_up(x: float) -> int:
    """Round .5 up (toward +inf), unlike Python's round() which rounds half to even."""
    return int(math.floor(x + 0.5))


def score_conviction(code: str, percentage_change: float) -> int:
    """Per-trade conviction, 0-100.

    P (buy):  >=50% -> 98, >=25% -> 92, >=10% -> 85, >=5% -> 72, else 40..
    S (sell): >=50% -> 70, >=20% -> 55, else 20..
    anything else (awards, exercises, gifts, withholding): low, capped at 30
    """
    c = (code or "").strip().upper()
    pct = float(percentage_change or 0.0)
    if c == "P":
        if pct >= 50:
            return 98
        if pct >= 25:
            return 92
        if pct >= 10:
            return 85
        if pct >= 5:
            return 72
        return max(40, round_half_up(pct * 8))
    if c == "S":
        if pct >= 50:
            return 70
        if pct >= 20:
            return 55
        return max(20, round_half_up(pct * 2.5))
    return min(30, round_half_up(10 + pct * 0.5))


def confidence_label(score: int) -> str:
    if score <= 30:
        return LABEL_CAUTION
    if score <= 70:
        return LABEL_NEUTRAL
    return LABEL_HIGH


def _true_code(t: ProcessedTrade) -> str:
    return (t.raw_transaction_code or t.transaction_code or "").strip().upper()


def calculate_confidence(trades: Sequence[ProcessedTrade]) -> ConfidenceResult:
    """Aggregate confidence for one ticker's trades.

    Base 50, then in order:
      Cluster buy       +30  3+ distinct insiders bought (code P)
      Executive power   +20  a CEO / CFO / Chief bought
      Skin in the game  +15  a buy grew the insider's stake by more than 10%
      Insider selling   -20  per sale (code S), uncapped
    Clamped to 0-100. No trades at all is the neutral default.
    """
    if not trades:
        return ConfidenceResult(score=BASE_SCORE, label=LABEL_NEUTRAL, signals=[])

    score = BASE_SCORE
    signals: List[ConfidenceSignal] = []

    buys = [t for t in trades if _true_code(t) == "P"]

    buyers = {t.insider_name for t in buys}
    if len(buyers) >= CLUSTER_BUY_MIN_INSIDERS:
        score += CLUSTER_BUY_POINTS
        signals.append(
            ConfidenceSignal(
                kind="cluster_buy",
                text=f"Cluster Buy ({len(buyers)} Insiders)",
                points=CLUSTER_BUY_POINTS,
            )
        )

    exec_buys = [t for t in buys if any(m in (t.role or "").upper() for m in EXECUTIVE_MARKERS)]
    if exec_buys:
        score += EXECUTIVE_POINTS
        first = exec_buys[0]
        signals.append(
            ConfidenceSignal(
                kind="executive_power",
                text=f"{first.insider_name} ({first.role}) Buying Detected",
                points=EXECUTIVE_POINTS,
            )
        )

    big_buys = [t for t in buys if t.percentage_change > SKIN_IN_THE_GAME_MIN_PCT]
    if big_buys:
        score += SKIN_IN_THE_GAME_POINTS
        biggest = max(big_buys, key=lambda t: t.percentage_change)
        signals.append(
            ConfidenceSignal(
                kind="skin_in_the_game",
                text=f"{biggest.insider_name} increased stake by {round_half_up(biggest.percentage_change)}%",
                points=SKIN_IN_THE_GAME_POINTS,
            )
        )

    sells = [t for t in trades if _true_code(t) == "S"]
    if sells:
        penalty = SALE_PENALTY_POINTS * len(sells)
        score -= penalty
        signals.append(
            ConfidenceSignal(
                kind="insider_selling",
                text=f"{len(sells)} Insider Sale{'s' if len(sells) > 1 else ''} Detected",
                points=-penalty,
            )
        )

    score = max(0, min(100, score))
    return ConfidenceResult(score=score, label=confidence_label(score), signals=signals)
