"""
Request and document models for circular resolution.

A resolution starts from a ResolutionRequest supplied by the caller, is
narrowed by the locator into a CircularReference, and ends with a
RetrievedDocument whose PDF text becomes ExtractedText.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from ..errors import ValidationError

ZIP_MAGIC = b'PK\x03\x04'


class Exchange(str, Enum):
    """Exchanges publishing listing circulars."""

    NSE = 'NSE'
    BSE = 'BSE'


class ContentType(str, Enum):
    """Binary payload kinds the retriever hands back."""

    ZIP = 'zip'
    PDF = 'pdf'

    @classmethod
    def sniff(cls, content: bytes) -> 'ContentType':
        """Zip when the payload starts with the zip local-header magic, else PDF."""
        return cls.ZIP if content.startswith(ZIP_MAGIC) else cls.PDF


def parse_listing_date(value: Any) -> date:
    """Accept a date, a datetime or an ISO string (only the first 10 chars matter)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and len(value.strip()) >= 10:
        return date.fromisoformat(value.strip()[:10])
    raise ValueError(f'unparseable listing date: {value!r}')


class ResolutionRequest(BaseModel):
    """Immutable input to a resolution attempt."""

    model_config = ConfigDict(frozen=True)

    company_name: str = Field(..., min_length=1, description='Company name as free text')
    exchange_hint: str = Field(
        default='', description='Free text naming BSE and/or NSE, optionally SME'
    )
    listing_date: date = Field(..., description='Listing date of the equity shares')

    @field_validator('company_name')
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('company name is blank')
        return v

    @field_validator('listing_date', mode='before')
    @classmethod
    def _coerce_date(cls, v: Any) -> date:
        return parse_listing_date(v)

    @classmethod
    def from_raw(
        cls,
        company_name: str | None,
        exchange_hint: str | None,
        listing_date: Any,
    ) -> 'ResolutionRequest':
        """Build a request from caller input, raising our ValidationError on bad input."""
        try:
            return cls(
                company_name=company_name or '',
                exchange_hint=exchange_hint or '',
                listing_date=listing_date,
            )
        except PydanticValidationError as e:
            raise ValidationError(
                'Malformed resolution request',
                context={'company_name': company_name, 'listing_date': str(listing_date), 'errors': e.error_count()},
            ) from e

    @property
    def names_bse(self) -> bool:
        return 'BSE' in self.exchange_hint.upper()


class CircularReference(BaseModel):
    """A located circular. ``document_url`` is None when only the notice id is known."""

    model_config = ConfigDict(frozen=True)

    exchange: Exchange
    id: str
    document_url: str | None = None
    title: str = ''


class RetrievedDocument(BaseModel):
    """Raw bytes of a downloaded circular attachment."""

    content: bytes
    content_type: ContentType

    @classmethod
    def from_bytes(cls, content: bytes) -> 'RetrievedDocument':
        return cls(content=content, content_type=ContentType.sniff(content))

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class ExtractedText(BaseModel):
    """Plain text pulled out of a PDF."""

    text: str
    page_count: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.text.strip()
