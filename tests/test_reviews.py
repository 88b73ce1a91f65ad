from datetime import datetime
from bson import ObjectId

from app.services.reviews import compute_average_rating, refresh_rating, upsert_review


def test_first_review_is_appended():
    patient = ObjectId()
    reviews = upsert_review([], patient, 4, "Thorough", datetime(2026, 1, 1))
    assert reviews == [{"patient": patient, "rating": 4, "comment": "Thorough", "date": datetime(2026, 1, 1)}]


def test_repeat_review_replaces_existing_entry():
    patient, other = ObjectId(), ObjectId()
    reviews = [
        {"patient": other, "rating": 5, "comment": "Great", "date": datetime(2026, 1, 1)},
        {"patient": patient, "rating": 2, "comment": "Late", "date": datetime(2026, 1, 2)},
    ]

    upsert_review(reviews, patient, 4, "Better this time", datetime(2026, 2, 1))

    assert len(reviews) == 2
    assert reviews[1] == {
        "patient": patient, "rating": 4, "comment": "Better this time", "date": datetime(2026, 2, 1),
    }
    assert reviews[0]["rating"] == 5


def test_patient_ids_match_across_types():
    patient = ObjectId()
    reviews = [{"patient": patient, "rating": 1, "comment": None, "date": datetime(2026, 1, 1)}]
    upsert_review(reviews, str(patient), 3, None, datetime(2026, 1, 5))
    assert len(reviews) == 1
    assert reviews[0]["rating"] == 3


def test_average_rating():
    assert compute_average_rating([]) == 0
    assert compute_average_rating([{"rating": 4}, {"rating": 5}, {"rating": 5}]) == 4.7


def test_refresh_rating_updates_cached_fields():
    doctor = {"reviews": [{"rating": 3}, {"rating": 4}], "average_rating": 0, "total_reviews": 0}
    refresh_rating(doctor)
    assert doctor["average_rating"] == 3.5
    assert doctor["total_reviews"] == 2
