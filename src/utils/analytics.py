import random
from typing import Optional

from db.models import AnalyticsMetric
from utils.pure import now_ms

ACTIONS = ["Viewed Product", "Added to Cart", "Checkout", "Search", "Browse Gallery"]


def synthesize_metric(
    rng: Optional[random.Random] = None, timestamp: Optional[int] = None
) -> AnalyticsMetric:
    """
    A made-up traffic sample for the admin dashboard.
    Not derived from real activity.
    """
    rng = rng or random.Random()
    return AnalyticsMetric(
        timestamp=timestamp if timestamp is not None else now_ms(),
        active_users=rng.randint(10, 29),
        page_views=rng.randint(0, 4),
        recent_action=rng.choice(ACTIONS),
    )
