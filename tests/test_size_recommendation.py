"""Unit tests for history-based size recommendations."""

from unittest.mock import MagicMock

import pytest

from fit_vton.models import BodyMeasurements, GarmentCategory, TryOnSessionRecord
from fit_vton.services import InMemorySessionStore, SizeRecommendationService


def session(size: str, fit: float, user: str = "u1") -> TryOnSessionRecord:
    return TryOnSessionRecord(
        user_id=user,
        garment_type=GarmentCategory.TOP,
        size=size,
        measurements=BodyMeasurements.default(),
        fit_score=fit,
        processing_time=100.0,
    )


@pytest.fixture
def store():
    return InMemorySessionStore()


class TestSizeRecommendation:

    def test_mode_of_good_fits(self, store):
        """Two good M fits and one poor L fit -> M at 2/3 confidence."""
        store.append(session("M", 0.8))
        store.append(session("M", 0.8))
        store.append(session("L", 0.5))

        rec = SizeRecommendationService(store).recommend("u1", 42)

        assert rec.recommended_size == "M"
        assert rec.confidence == pytest.approx(2 / 3)
        assert rec.reasoning

    def test_no_history_default(self, store):
        rec = SizeRecommendationService(store).recommend("nobody", 1)
        assert rec.recommended_size == "M"
        assert rec.confidence == 0.5
        assert rec.reasoning == ["Default recommendation based on general sizing"]

    def test_no_good_fits_default(self, store):
        store.append(session("XL", 0.2))
        rec = SizeRecommendationService(store).recommend("u1", 1)
        assert rec.recommended_size == "M"
        assert rec.confidence == 0.5

    def test_store_failure_is_soft(self):
        failing = MagicMock()
        failing.history.side_effect = ConnectionError("store down")

        rec = SizeRecommendationService(failing).recommend("u1", 1)

        assert rec.recommended_size == "M"
        assert rec.confidence == 0.5

    def test_tie_goes_to_later_size(self, store):
        store.append(session("M", 0.9))
        store.append(session("L", 0.9))
        rec = SizeRecommendationService(store).recommend("u1")
        assert rec.recommended_size == "L"
        assert rec.confidence == pytest.approx(0.5)

    def test_histories_are_per_user(self, store):
        store.append(session("S", 0.9, user="a"))
        store.append(session("L", 0.9, user="b"))
        assert SizeRecommendationService(store).recommend("a").recommended_size == "S"

    def test_serializes_camel_case(self, store):
        rec = SizeRecommendationService(store).recommend("u1")
        assert set(rec.model_dump(by_alias=True)) == {"recommendedSize", "confidence", "reasoning"}


class TestInMemorySessionStore:

    def test_bounded_per_user(self):
        store = InMemorySessionStore(max_per_user=3)
        for size in ("XS", "S", "M", "L"):
            store.append(session(size, 0.9))
        assert [s.size for s in store.history("u1")] == ["S", "M", "L"]
