"""
Derived cricket rates, computed at read time.

Sentinel convention: every rate is None when its denominator is zero
(no balls faced, no wickets, no balls bowled). None means "not computed",
never "zero". Win percentage is the exception: a team with no matches
played reports 0.0.
"""

from typing import Optional, Union

Number = Union[int, float]


def overs_to_balls(overs: Optional[Union[str, Number]]) -> int:
    """
    Convert cricket over notation to legal deliveries.

    "3.4" means 3 overs and 4 balls, i.e. 22 deliveries (not 3.4 * 6).

    Examples:
        "20"   -> 120
        "3.4"  -> 22
        4      -> 24
        None   -> 0
    """
    if overs is None or overs == "":
        return 0
    text = str(overs).strip()
    whole, _, part = text.partition(".")
    try:
        completed = int(whole or 0)
        balls = int(part[:1] or 0) if part else 0
    except ValueError:
        return 0
    if completed < 0 or balls < 0:
        return 0
    return completed * 6 + balls


def strike_rate(runs: Number, balls: Number) -> Optional[float]:
    """Runs per 100 balls faced, or None when no balls were faced."""
    if not balls:
        return None
    return round(runs / balls * 100, 2)


def batting_average(runs: Number, innings: Number) -> Optional[float]:
    """Runs per innings batted, or None when the player never batted."""
    if not innings:
        return None
    return round(runs / innings, 2)


def bowling_average(runs_conceded: Number, wickets: Number) -> Optional[float]:
    """Runs conceded per wicket; None (undefined) when no wickets were taken."""
    if not wickets:
        return None
    return round(runs_conceded / wickets, 2)


def economy_rate(runs_conceded: Number, overs: Optional[Union[str, Number]]) -> Optional[float]:
    """Runs conceded per six-ball over, or None when no balls were bowled."""
    balls = overs_to_balls(overs)
    if balls == 0:
        return None
    return round(runs_conceded / balls * 6, 2)


def win_percentage(won: int, played: int) -> float:
    """Wins as a percentage of matches played, one decimal; 0.0 when none played."""
    if played <= 0:
        return 0.0
    return round(won / played * 100, 1)


def balls_to_overs(balls: int) -> str:
    """Inverse of overs_to_balls: 22 -> "3.4", 120 -> "20"."""
    completed, part = divmod(max(int(balls or 0), 0), 6)
    return f"{completed}.{part}" if part else str(completed)
