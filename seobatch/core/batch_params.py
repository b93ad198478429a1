"""SharedParams data model."""

from dataclasses import dataclass
from typing import Optional

from ..exceptions import ValidationError


DEFAULT_COUNTRY = "TR"


def default_language(country: str) -> str:
    """Research language used for a target country when none is given."""
    return "tr" if country.upper() == "TR" else "en"


@dataclass
class SharedParams:
    """Parameters shared by every job of a batch.

    Attributes:
        client_id: Client the tracking records belong to
        country: Target country code (e.g. "TR", "US")
        language: Target language; derived from the country when omitted
    """

    client_id: int
    country: str = DEFAULT_COUNTRY
    language: Optional[str] = None

    def __post_init__(self):
        """Validate and normalize parameters."""
        if isinstance(self.client_id, bool) or not isinstance(self.client_id, int) or self.client_id <= 0:
            raise ValidationError(f"client_id must be a positive integer, got {self.client_id!r}")

        country = (self.country or "").strip().upper()
        if len(country) != 2 or not country.isalpha():
            raise ValidationError(f"country must be a two-letter code, got {self.country!r}")
        self.country = country

        language = (self.language or "").strip().lower()
        self.language = language or default_language(country)
