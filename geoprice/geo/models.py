"""
Data models for visitor country resolution.

Defines the per-request visitor context and the sticky country selection
that is round-tripped through the client cookie.
"""

import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

# A selection stays valid for 30 days from the moment it was made
SELECTION_MAX_AGE = timedelta(days=30)

_COOKIE_SEPARATOR = "|"

# ISO 3166 alpha-2 (or alpha-3) style codes only
_COUNTRY_CODE = re.compile(r"^[A-Z]{2,3}$")


def normalize_country(value: Optional[str]) -> Optional[str]:
    """
    Normalize a country code.

    Trims whitespace and upper-cases. Blank input, or anything that is not
    a two or three letter code, means "unresolved".

    Args:
        value: Raw country code (may be None).

    Returns:
        Normalized code, or None if blank or malformed.
    """
    if value is None:
        return None
    code = str(value).strip().upper()
    if not _COUNTRY_CODE.match(code):
        return None
    return code


@dataclass
class CountrySelection:
    """An explicit (or geolocated and remembered) country choice."""

    country: str
    selected_at: datetime
    max_age: timedelta = SELECTION_MAX_AGE

    @property
    def expires_at(self) -> datetime:
        try:
            return self.selected_at + self.max_age
        except OverflowError:
            return datetime.max

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the selection is older than its max age."""
        return (now or datetime.now()) - self.max_age > self.selected_at

    def to_cookie_value(self) -> str:
        """Serialize as ``CC|<iso timestamp>`` for the selection cookie."""
        return f"{self.country}{_COOKIE_SEPARATOR}{self.selected_at.isoformat()}"

    @classmethod
    def from_cookie_value(
        cls,
        raw: Optional[str],
        now: Optional[datetime] = None,
        max_age: timedelta = SELECTION_MAX_AGE,
    ) -> Optional["CountrySelection"]:
        """
        Parse a selection cookie.

        A bare country code (no timestamp) is accepted and treated as set
        now; the browser-side max-age already bounds its lifetime. Stamps
        are written as naive local time, so one carrying a UTC offset or
        lying in the future was not written here and is rejected.

        Returns:
            CountrySelection, or None if the cookie is empty or unreadable.
        """
        if not raw:
            return None

        code, _, stamp = raw.partition(_COOKIE_SEPARATOR)
        country = normalize_country(code)
        if country is None:
            return None

        now = now or datetime.now()
        selected_at = now
        if stamp:
            try:
                selected_at = datetime.fromisoformat(stamp)
            except ValueError:
                return None
            if selected_at.tzinfo is not None or selected_at > now:
                return None

        return cls(country=country, selected_at=selected_at, max_age=max_age)


@dataclass
class VisitorContext:
    """
    Per-request visitor state.

    Attributes:
        remote_addr: Visitor's network address.
        selection: Explicit country selection read from the client, if any.
        resolved_country: Cache slot for the resolved country.
        resolved: Whether resolved_country has been filled for this request.
        selection_changed: Set when a new selection must be persisted
            back to the client.
    """

    remote_addr: str = ""
    selection: Optional[CountrySelection] = None
    resolved_country: Optional[str] = None
    resolved: bool = False
    selection_changed: bool = False

    def active_selection(self, now: Optional[datetime] = None) -> Optional[str]:
        """Return the selected country if a non-expired selection exists."""
        if self.selection is None or self.selection.is_expired(now):
            return None
        return self.selection.country

    def remember(self, country: str, now: Optional[datetime] = None) -> CountrySelection:
        """Store a country as the explicit selection and flag it for persistence."""
        self.selection = CountrySelection(country=country, selected_at=now or datetime.now())
        self.selection_changed = True
        self.resolved_country = country
        self.resolved = True
        return self.selection
