"""Size suggestions from a user's past fit outcomes."""

import logging
from collections import Counter

from ..models import SizeRecommendation
from .session_store import SessionStore

logger = logging.getLogger(__name__)

GOOD_FIT_THRESHOLD = 0.7
DEFAULT_SIZE = "M"
DEFAULT_CONFIDENCE = 0.5
DEFAULT_REASONING = "Default recommendation based on general sizing"


class SizeRecommendationService:
    """Recommends the size a user most often fit well in.

    Advisory only: any failure reading history degrades to a neutral default.
    """

    def __init__(self, store: SessionStore):
        self.store = store

    def recommend(self, user_id: str, product_id: int | None = None) -> SizeRecommendation:
        try:
            history = self.store.history(user_id)
        except Exception as e:
            logger.warning("Size history lookup failed for user %s: %s", user_id, e)
            return self.default()

        if not history:
            return self.default()

        tally = Counter(s.size for s in history if s.fit_score > GOOD_FIT_THRESHOLD)
        if not tally:
            return self.default()

        # ties go to the size that first appeared later
        size = max(reversed(tally), key=tally.__getitem__)
        count = tally[size]
        confidence = min(count / len(history), 1.0)
        return SizeRecommendation(
            recommended_size=size,
            confidence=confidence,
            reasoning=[
                "Based on your previous try-on sessions",
                f"Size {size} fit you well in {count} of {len(history)} sessions",
            ],
        )

    @staticmethod
    def default() -> SizeRecommendation:
        return SizeRecommendation(
            recommended_size=DEFAULT_SIZE,
            confidence=DEFAULT_CONFIDENCE,
            reasoning=[DEFAULT_REASONING],
        )
