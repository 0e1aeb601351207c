"""Helpers for working with captured locations."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from . import Location


def _strip(value: Optional[str]) -> Optional[str]:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


@dataclass(slots=True)
class LocationPayload:
    """Definition of a location that may be persisted or re-used."""

    pano_id: str
    map_id: str
    country: str
    country_code: Optional[str] = None
    meta_name: Optional[str] = None
    note: Optional[str] = None
    footer: Optional[str] = None
    images: List[str] = field(default_factory=list)

    def normalized(self) -> "LocationPayload":
        """Return a payload with leading/trailing whitespace stripped."""
        return LocationPayload(
            pano_id=self.pano_id.strip(),
            map_id=self.map_id.strip(),
            country=self.country.strip(),
            country_code=_strip(self.country_code),
            meta_name=_strip(self.meta_name),
            note=_strip(self.note),
            footer=_strip(self.footer),
            images=[url.strip() for url in self.images if url and url.strip()],
        )


def decode_images(location: Location) -> List[str]:
    """Return the stored image URLs, tolerating blank or malformed JSON."""
    if not location.images or not location.images.strip():
        return []
    try:
        images = json.loads(location.images)
    except json.JSONDecodeError:
        return []
    return images if isinstance(images, list) else []


async def get_location(session: AsyncSession, location_id: int) -> Optional[Location]:
    return await session.get(Location, location_id)


async def get_or_create_location(
    session: AsyncSession, payload: LocationPayload
) -> tuple[Location, bool]:
    """Fetch a location by panorama id or create it when missing."""
    normalized = payload.normalized()

    stmt = select(Location).where(Location.pano_id == normalized.pano_id)
    result = await session.execute(stmt)
    location = result.scalars().first()

    if location is not None:
        # Fill in details the first capture did not have.
        has_changes = False
        if normalized.meta_name and not location.meta_name:
            location.meta_name = normalized.meta_name
            has_changes = True
        if normalized.note and not location.note:
            location.note = normalized.note
            has_changes = True
        if normalized.images and not decode_images(location):
            location.images = json.dumps(normalized.images)
            has_changes = True
        if has_changes:
            await session.flush()
        return location, False

    location = Location(
        pano_id=normalized.pano_id,
        map_id=normalized.map_id,
        country=normalized.country,
        country_code=normalized.country_code,
        meta_name=normalized.meta_name,
        note=normalized.note,
        footer=normalized.footer,
        images=json.dumps(normalized.images),
    )
    session.add(location)
    await session.flush()
    return location, True


async def list_countries(session: AsyncSession) -> List[str]:
    """Return every country with at least one location, alphabetically."""
    stmt = (
        select(Location.country)
        .where(Location.country.is_not(None))
        .distinct()
        .order_by(Location.country)
    )
    result = await session.execute(stmt)
    return list(result.scalars())
