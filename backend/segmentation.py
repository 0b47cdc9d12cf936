"""Route length and day splitting."""

from geo import distance_km
from models import Path


def total_distance(path: Path) -> float:
    """Returns the haversine length of ``path`` in km; 0 for under 2 points."""
    if len(path) < 2:
        return 0.0
    return sum(distance_km(path[i - 1], path[i]) for i in range(1, len(path)))


def split_by_days(path: Path, days: int) -> list[Path]:
    """Splits ``path`` greedily into ``days`` segments of similar length.

    Walks the path accumulating distance and closes a day as soon as it
    reaches ``total / days``. The closing point is shared with the next day.
    After ``days - 1`` days are closed, the rest of the path is the last day.

    A day is also closed early when the edges left are only just enough to
    give every remaining day one edge, so the result always has exactly
    ``days`` entries. When the path runs out of points anyway, the missing
    trailing days are built from the final two points. Both only change the
    split for degenerate paths whose final edges are longer than a day's
    share; ordinary paths split exactly as the plain greedy walk does.
    """
    total = total_distance(path)
    if days <= 1 or total == 0:
        return [path]

    target_per_day = total / days
    last = len(path) - 1
    result: list[Path] = []
    day_start = 0
    acc = 0.0

    for i in range(1, len(path)):
        if len(result) >= days - 1:
            break
        acc += distance_km(path[i - 1], path[i])
        days_after_this = days - len(result) - 1
        if acc >= target_per_day or last - i <= days_after_this:
            result.append(path[day_start:i + 1])
            day_start = i
            acc = 0.0

    if day_start < last:
        result.append(path[day_start:])
    while len(result) < days:
        result.append([path[-2], path[-1]])
    return result
