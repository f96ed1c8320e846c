from kindred.discovery.distance import EARTH_RADIUS_KM, distance_km, within_radius
from kindred.discovery.candidates import get_candidates, get_excluded_ids
from kindred.discovery.swipes import (
    QuotaStatus,
    SwipeResult,
    get_quota_status,
    reconcile_matches,
    record_like,
    record_pass,
)

__all__ = [
    "EARTH_RADIUS_KM",
    "distance_km",
    "within_radius",
    "get_candidates",
    "get_excluded_ids",
    "QuotaStatus",
    "SwipeResult",
    "get_quota_status",
    "reconcile_matches",
    "record_like",
    "record_pass",
]
