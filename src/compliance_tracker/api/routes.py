"""
Compliance Tracker — API rute

countries, custom-links, custom-content (+ admin odobrenja) i export.
Handleri su async; datotečni I/O je sinkron pa se izmjene ne preklapaju.
"""

import logging
import re
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse, Response

from compliance_tracker.api.models import (
    CreateFormatRequest, CreateLegislationRequest, CustomLinkRequest,
    ExportRequest, UpdateCustomLinkRequest, UpdateFormatRequest,
    UpdateLegislationRequest,
)
from compliance_tracker.api.responses import envelope
from compliance_tracker.core.errors import NotFoundError, ValidationError
from compliance_tracker.countries.query import (
    DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT, CountryFilter, parse_timestamp,
    query_countries,
)
from compliance_tracker.export import apply_export_filters, export_csv, export_json

logger = logging.getLogger("compliance_tracker.api")

COUNTRY_ID_RE = re.compile(r"^[A-Za-z]{3}$")

StatusParam = Literal["none", "planned", "permitted", "mandatory"]
LinkTypeParam = Literal["legislation", "specification", "news", "standard"]


def get_state(request: Request):
    return request.app.state.tracker


def _parse_date_param(name: str, value: Optional[str]):
    if value is None:
        return None
    parsed = parse_timestamp(value)
    if parsed is None:
        raise ValidationError("Invalid date format", {
            "errors": [{"field": name, "message": "Must be an ISO-8601 date", "value": value}],
        })
    return parsed


# ═══════════════════════════════════════════
# COUNTRIES
# ═══════════════════════════════════════════

countries_router = APIRouter(prefix="/countries", tags=["countries"])


@countries_router.get("")
async def list_countries(
    request: Request,
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    continent: Optional[str] = None,
    region: Optional[str] = None,
    search: Optional[str] = None,
    status: Optional[StatusParam] = None,
    updatedSince: Optional[str] = None,
    state=Depends(get_state),
):
    flt = CountryFilter(
        continent=continent, region=region, search=search, status=status,
        updated_since=_parse_date_param("updatedSince", updatedSince),
    )
    result = query_countries(state.countries.merged(), flt, page, limit)
    logger.info("Retrieved %d countries (page %d, total: %d)",
                len(result.items), page, result.total)
    return envelope(request, [c.to_dict() for c in result.items],
                    total=result.total, page=result.page, limit=result.limit)


@countries_router.get("/{country_id}")
async def get_country(country_id: str, request: Request, state=Depends(get_state)):
    if not COUNTRY_ID_RE.match(country_id):
        raise ValidationError("Invalid country ID format", {
            "field": "countryId",
            "message": "countryId must be a 3-letter ISO code",
            "value": country_id,
        })
    country = state.countries.get(country_id)
    if country is None:
        raise NotFoundError(f"Country with ID '{country_id}' not found",
                            {"field": "countryId", "value": country_id},
                            code="COUNTRY_NOT_FOUND")
    return envelope(request, country.to_dict())


# ═══════════════════════════════════════════
# CUSTOM LINKS
# ═══════════════════════════════════════════

custom_links_router = APIRouter(prefix="/custom-links", tags=["custom-links"])


def _link_not_found(link_id: str) -> NotFoundError:
    return NotFoundError("Custom link not found", {"id": link_id}, code="LINK_NOT_FOUND")


@custom_links_router.get("")
async def list_links(request: Request, state=Depends(get_state)):
    links = state.links.list()
    return envelope(request, links, total=len(links))


@custom_links_router.post("")
async def upsert_link(req: CustomLinkRequest, request: Request, state=Depends(get_state)):
    link, created = state.links.upsert(req.model_dump())
    return JSONResponse(status_code=201 if created else 200,
                        content=envelope(request, link, created=created))


@custom_links_router.get("/country/{code}")
async def links_for_country(code: str, request: Request, state=Depends(get_state)):
    links = state.links.list_active(code)
    return envelope(request, links, total=len(links))


@custom_links_router.get("/resolve/{code}")
async def resolve_link(
    code: str,
    request: Request,
    originalUrl: str,
    linkType: LinkTypeParam,
    lastUpdated: Optional[str] = None,
    state=Depends(get_state),
):
    since = _parse_date_param("lastUpdated", lastUpdated)
    return envelope(request, state.links.resolve(code, originalUrl, linkType, since))


@custom_links_router.get("/{link_id}")
async def get_link(link_id: str, request: Request, state=Depends(get_state)):
    link = state.links.get(link_id)
    if link is None:
        raise _link_not_found(link_id)
    return envelope(request, link)


@custom_links_router.put("/{link_id}")
async def update_link(link_id: str, req: UpdateCustomLinkRequest, request: Request,
                      state=Depends(get_state)):
    link = state.links.update(link_id, req.model_dump(exclude_none=True))
    if link is None:
        raise _link_not_found(link_id)
    return envelope(request, link)


@custom_links_router.delete("/{link_id}")
async def delete_link(link_id: str, request: Request, state=Depends(get_state)):
    if not state.links.delete(link_id):
        raise _link_not_found(link_id)
    return envelope(request, {"id": link_id, "deleted": True})


# ═══════════════════════════════════════════
# CUSTOM CONTENT (formati + zakonodavstvo)
# ═══════════════════════════════════════════

custom_content_router = APIRouter(prefix="/custom-content", tags=["custom-content"])


def _format_not_found(format_id: str) -> NotFoundError:
    return NotFoundError("Custom format not found", {"id": format_id}, code="FORMAT_NOT_FOUND")


def _legislation_not_found(legislation_id: str) -> NotFoundError:
    return NotFoundError("Custom legislation not found", {"id": legislation_id},
                         code="LEGISLATION_NOT_FOUND")


# ── Formati ──

@custom_content_router.get("/formats")
async def list_formats(request: Request, countryCode: Optional[str] = None,
                       state=Depends(get_state)):
    formats = state.formats.list(countryCode)
    return envelope(request, formats, total=len(formats))


@custom_content_router.post("/formats", status_code=201)
async def create_format(req: CreateFormatRequest, request: Request, state=Depends(get_state)):
    return envelope(request, state.formats.create(req.model_dump(exclude_none=True)))


@custom_content_router.get("/formats/{format_id}")
async def get_format(format_id: str, request: Request, state=Depends(get_state)):
    fmt = state.formats.get(format_id)
    if fmt is None:
        raise _format_not_found(format_id)
    return envelope(request, fmt)


@custom_content_router.put("/formats/{format_id}")
async def update_format(format_id: str, req: UpdateFormatRequest, request: Request,
                        state=Depends(get_state)):
    fmt = state.formats.update(format_id, req.model_dump(exclude_none=True))
    if fmt is None:
        raise _format_not_found(format_id)
    return envelope(request, fmt)


@custom_content_router.delete("/formats/{format_id}")
async def delete_format(format_id: str, request: Request, state=Depends(get_state)):
    if not state.formats.delete(format_id):
        raise _format_not_found(format_id)
    return envelope(request, {"id": format_id, "deleted": True})


# ── Zakonodavstvo ──

@custom_content_router.get("/legislation")
async def list_legislation(request: Request, countryCode: Optional[str] = None,
                           state=Depends(get_state)):
    items = state.legislation.list(countryCode)
    return envelope(request, items, total=len(items))


@custom_content_router.post("/legislation", status_code=201)
async def create_legislation(req: CreateLegislationRequest, request: Request,
                             state=Depends(get_state)):
    return envelope(request, state.legislation.create(req.model_dump(exclude_none=True)))


@custom_content_router.get("/legislation/{legislation_id}")
async def get_legislation(legislation_id: str, request: Request, state=Depends(get_state)):
    item = state.legislation.get(legislation_id)
    if item is None:
        raise _legislation_not_found(legislation_id)
    return envelope(request, item)


@custom_content_router.put("/legislation/{legislation_id}")
async def update_legislation(legislation_id: str, req: UpdateLegislationRequest,
                             request: Request, state=Depends(get_state)):
    item = state.legislation.update(legislation_id, req.model_dump(exclude_none=True))
    if item is None:
        raise _legislation_not_found(legislation_id)
    return envelope(request, item)


@custom_content_router.delete("/legislation/{legislation_id}")
async def delete_legislation(legislation_id: str, request: Request, state=Depends(get_state)):
    if not state.legislation.delete(legislation_id):
        raise _legislation_not_found(legislation_id)
    return envelope(request, {"id": legislation_id, "deleted": True})


# ── Admin ──

@custom_content_router.get("/admin/pending")
async def pending_content(request: Request, state=Depends(get_state)):
    pending = {
        "formats": state.formats.pending(),
        "legislation": state.legislation.pending(),
        "links": state.links.pending(),
    }
    total = sum(len(v) for v in pending.values())
    return envelope(request, pending, total=total)


@custom_content_router.post("/admin/{kind}/{item_id}/approve")
async def approve_content(kind: Literal["formats", "legislation", "links"], item_id: str,
                          request: Request, state=Depends(get_state)):
    service, not_found = {
        "formats": (state.formats, _format_not_found),
        "legislation": (state.legislation, _legislation_not_found),
        "links": (state.links, _link_not_found),
    }[kind]
    item = service.approve(item_id, "system")
    if item is None:
        raise not_found(item_id)
    logger.info("Approved custom %s: %s", service.label, item_id)
    return envelope(request, item)


# ═══════════════════════════════════════════
# EXPORT
# ═══════════════════════════════════════════

export_router = APIRouter(prefix="/export", tags=["export"])


def _export_selection(req: ExportRequest, state):
    filters = req.filters.model_dump(exclude_none=True) if req.filters else None
    return apply_export_filters(state.countries.merged(), filters)


@export_router.post("/csv")
async def export_countries_csv(req: ExportRequest, state=Depends(get_state)):
    body = export_csv(_export_selection(req, state))
    return Response(
        content=body,
        media_type="text/csv; charset=utf-8",
        headers={"Content-Disposition": 'attachment; filename="compliance-export.csv"'},
    )


@export_router.post("/json")
async def export_countries_json(req: ExportRequest, request: Request, state=Depends(get_state)):
    countries = _export_selection(req, state)
    return envelope(request, export_json(countries, req.format),
                    total=len(countries), format=req.format)
