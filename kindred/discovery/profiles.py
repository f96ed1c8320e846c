from datetime import date
from typing import List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from kindred.core.config import get_settings
from kindred.core.exceptions import NotFound
from kindred.db.models import PROFILE_STATUSES, Profile
from kindred.db.repositories import profile_repo
from kindred.db.utils.session_management import store_operation
from kindred.discovery.distance import Coordinates, resolve_coordinates


def default_coordinates() -> Coordinates:
    settings = get_settings()
    return settings.DEFAULT_LATITUDE, settings.DEFAULT_LONGITUDE


def profile_coordinates(profile: Profile) -> Coordinates:
    """A profile's location, or the default city when it has none."""
    return resolve_coordinates(profile.latitude, profile.longitude, default_coordinates())


def calculate_age(birth_date: Optional[date], today: Optional[date] = None) -> Optional[int]:
    """Age in whole years; the birthday itself counts as the new year."""
    if birth_date is None:
        return None
    today = today or date.today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def format_location(
    district: Optional[str] = None,
    city: Optional[str] = None,
    country: Optional[str] = None,
) -> str:
    """Display string: "District, City", falling back to whatever parts exist."""
    if district and city:
        return f"{district}, {city}"
    if district:
        return district
    if city and country:
        return f"{city}, {country}"
    return city or country or ""


def parse_interests(raw: Optional[str]) -> List[str]:
    """Split a comma-delimited interests field, dropping blanks and repeats."""
    if not raw:
        return []
    interests: List[str] = []
    for part in raw.split(","):
        item = part.strip()
        if item and item not in interests:
            interests.append(item)
    return interests


@store_operation
async def get_profile(session: AsyncSession, user_id: str) -> Profile:
    profile = await profile_repo.get(session, user_id)
    if profile is None:
        raise NotFound(user_id)
    return profile


@store_operation
async def set_status(session: AsyncSession, user_id: str, status: str) -> Profile:
    """Moderate a profile: pending, approved or rejected."""
    if status not in PROFILE_STATUSES:
        raise ValueError(f"Unknown profile status: {status}")
    profile = await profile_repo.update(session, user_id, {"status": status})
    if profile is None:
        raise NotFound(user_id)
    logger.info(f"Profile {user_id} status set to {status}")
    return profile


@store_operation
async def update_location(
    session: AsyncSession,
    user_id: str,
    latitude: Optional[float],
    longitude: Optional[float],
    city: Optional[str] = None,
    district: Optional[str] = None,
    country: Optional[str] = None,
) -> Profile:
    if latitude is not None and not -90 <= latitude <= 90:
        raise ValueError(f"Latitude out of range: {latitude}")
    if longitude is not None and not -180 <= longitude <= 180:
        raise ValueError(f"Longitude out of range: {longitude}")
    profile = await profile_repo.update(
        session,
        user_id,
        {
            "latitude": latitude,
            "longitude": longitude,
            "city": city,
            "district": district,
            "country": country,
        },
    )
    if profile is None:
        raise NotFound(user_id)
    return profile
