"""Country allow-list used to narrow the memorizer's card universe."""

from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from sqlalchemy import Select

from .selection import CandidateCard


ALL_COUNTRIES = "all"


@dataclass(frozen=True, slots=True)
class CardFilter:
    """Restrict cards to a set of countries; ``None`` means every country."""

    countries: Optional[FrozenSet[str]] = None

    @classmethod
    def from_countries(cls, countries: Iterable[str]) -> "CardFilter":
        cleaned = frozenset(name.strip() for name in countries if name and name.strip())
        return cls(countries=cleaned or None)

    @classmethod
    def from_query(cls, country: Optional[str]) -> "CardFilter":
        """Parse a comma-separated ``country`` parameter; "all" or blank disables it."""
        if not country or country.strip().lower() == ALL_COUNTRIES:
            return cls()
        return cls.from_countries(country.split(","))

    @property
    def is_unrestricted(self) -> bool:
        return self.countries is None

    def matches(self, card: CandidateCard) -> bool:
        if self.countries is None:
            return True
        return card.country in self.countries

    def apply(self, stmt: Select, country_column) -> Select:
        """Add the equivalent SQL condition to a select over ``country_column``."""
        if self.countries is None:
            return stmt
        return stmt.where(country_column.in_(sorted(self.countries)))
