"""Premium computation between a domestic and a converted international price.

premium[d] = (international[d] * rate[d] - domestic[d]) / domestic[d] * 100

Defined only where all three inputs have a strictly positive value at d.
Values are kept at full float precision; rounding happens only when a
result is rendered for display.
"""

from collections.abc import Mapping

from kimp.logging import get_logger
from kimp.series.merge import sort_descending
from kimp.series.models import TimeSeries

logger = get_logger(__name__)


def premium_for(domestic: float, international: float, rate: float) -> float:
    """Premium (%) of the converted international price over the domestic one."""
    return (international * rate - domestic) / domestic * 100


def compute_premium(
    domestic: Mapping[str, float],
    international: Mapping[str, float],
    rate: Mapping[str, float],
) -> TimeSeries:
    """Compute the premium series over the intersection of all three domains.

    Zero or negative inputs are treated as invalid and the date is skipped.
    Gaps are never interpolated.

    Args:
        domestic: Domestic venue price per date (local currency).
        international: International venue price per date (foreign currency).
        rate: Foreign -> local conversion rate per date.

    Returns:
        Premium series sorted descending by date.
    """
    result: TimeSeries = {}
    skipped: list[str] = []

    for date_key in domestic.keys() & international.keys() & rate.keys():
        d, i, r = domestic[date_key], international[date_key], rate[date_key]
        if d <= 0 or i <= 0 or r <= 0:
            skipped.append(date_key)
            continue
        result[date_key] = premium_for(d, i, r)

    missing = (domestic.keys() | international.keys() | rate.keys()) - result.keys()
    if missing:
        logger.debug(
            "premium_skipped",
            invalid=sorted(skipped),
            incomplete=len(missing) - len(skipped),
        )

    return sort_descending(result)
