"""Pydantic request modeli za Compliance Tracker API."""

from typing import List, Literal, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, field_validator

FormatType = Literal["specification", "standard", "schema"]
LegislationType = Literal["directive", "regulation", "law", "decree", "guideline"]
LinkType = Literal["legislation", "specification", "news", "standard"]
ExportFormat = Literal["basic", "detailed", "summary"]


def _check_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    parsed = urlparse(value)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError("Invalid URL format")
    return value


def _check_country_code(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    if len(value) != 3 or not value.isascii() or not value.isalpha():
        raise ValueError("Country code must be a 3-letter ISO code")
    return value.upper()


def _check_required(value: Optional[str]) -> Optional[str]:
    if value is not None and not value.strip():
        raise ValueError("Field must not be empty")
    return value


class CreateFormatRequest(BaseModel):
    countryCode: str
    name: str
    version: Optional[str] = None
    url: str
    description: Optional[str] = None
    authority: str
    type: FormatType

    validate_url = field_validator("url")(_check_url)
    validate_country_code = field_validator("countryCode")(_check_country_code)
    validate_required = field_validator("name", "authority")(_check_required)


class UpdateFormatRequest(BaseModel):
    countryCode: Optional[str] = None
    name: Optional[str] = None
    version: Optional[str] = None
    url: Optional[str] = None
    description: Optional[str] = None
    authority: Optional[str] = None
    type: Optional[FormatType] = None
    approved: Optional[bool] = None

    validate_url = field_validator("url")(_check_url)
    validate_country_code = field_validator("countryCode")(_check_country_code)
    validate_required = field_validator("name", "authority")(_check_required)


class CreateLegislationRequest(BaseModel):
    countryCode: str
    name: str
    url: str
    language: Optional[str] = None
    jurisdiction: str
    type: LegislationType
    documentId: Optional[str] = None

    validate_url = field_validator("url")(_check_url)
    validate_country_code = field_validator("countryCode")(_check_country_code)
    validate_required = field_validator("name", "jurisdiction")(_check_required)


class UpdateLegislationRequest(BaseModel):
    countryCode: Optional[str] = None
    name: Optional[str] = None
    url: Optional[str] = None
    language: Optional[str] = None
    jurisdiction: Optional[str] = None
    type: Optional[LegislationType] = None
    documentId: Optional[str] = None
    approved: Optional[bool] = None

    validate_url = field_validator("url")(_check_url)
    validate_country_code = field_validator("countryCode")(_check_country_code)
    validate_required = field_validator("name", "jurisdiction")(_check_required)


class CustomLinkRequest(BaseModel):
    countryCode: str
    linkType: LinkType
    originalUrl: str
    customUrl: str
    title: str
    notes: Optional[str] = None

    validate_urls = field_validator("originalUrl", "customUrl")(_check_url)
    validate_country_code = field_validator("countryCode")(_check_country_code)
    validate_required = field_validator("title")(_check_required)


class UpdateCustomLinkRequest(BaseModel):
    countryCode: Optional[str] = None
    linkType: Optional[LinkType] = None
    originalUrl: Optional[str] = None
    customUrl: Optional[str] = None
    title: Optional[str] = None
    notes: Optional[str] = None
    isActive: Optional[bool] = None
    approved: Optional[bool] = None

    validate_urls = field_validator("originalUrl", "customUrl")(_check_url)
    validate_country_code = field_validator("countryCode")(_check_country_code)
    validate_required = field_validator("title")(_check_required)


class ExportFilters(BaseModel):
    countries: Optional[List[str]] = None
    continents: Optional[List[str]] = None
    status: Optional[List[str]] = None


class ExportRequest(BaseModel):
    filters: Optional[ExportFilters] = None
    format: ExportFormat = "detailed"
