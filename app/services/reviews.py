# app/services/reviews.py

from datetime import datetime
from typing import List, Optional


def upsert_review(reviews: List[dict], patient_id, rating: float, comment: Optional[str], now: datetime) -> List[dict]:
    """
    Record a patient's review in place. A patient holds at most one review
    per doctor, so a repeat submission overwrites rating, comment and date.
    """
    for review in reviews:
        if str(review.get("patient")) == str(patient_id):
            review.update({"rating": rating, "comment": comment, "date": now})
            return reviews
    reviews.append({"patient": patient_id, "rating": rating, "comment": comment, "date": now})
    return reviews


def compute_average_rating(reviews: List[dict]) -> float:
    if not reviews:
        return 0
    return round(sum(r["rating"] for r in reviews) / len(reviews), 1)


def refresh_rating(doctor: dict) -> dict:
    """Recompute the cached rating aggregate from the full review list."""
    reviews = doctor.get("reviews", [])
    doctor["average_rating"] = compute_average_rating(reviews)
    doctor["total_reviews"] = len(reviews)
    return doctor
