"""Content endpoints: listing, detail and purchase of ASMR resources."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from asmr.auth.dependencies import get_current_user, get_optional_user
from asmr.content.schemas import PurchaseResponse, ResourcePage, ResourceResponse
from asmr.content.service import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    get_resource,
    list_public_resources,
    parse_where,
    purchase_resource,
    resource_response,
    to_positive_int,
)
from asmr.database import get_session
from asmr.db.models import User
from asmr.db.relations import relation_id
from asmr.exceptions import NotFound
from asmr.schemas import Envelope, ok

router = APIRouter(prefix="/content", tags=["Content"])


@router.get("/list", response_model=Envelope[ResourcePage])
async def list_content(
    request: Request,
    page: str | None = Query(None),
    limit: str | None = Query(None),
    sort: str | None = Query(None),
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
) -> Envelope[ResourcePage]:
    """Paginated list of public resources, optionally filtered with ``where[field][op]=value``."""
    result = await list_public_resources(
        db,
        role=user.role if user else None,
        page=to_positive_int(page, DEFAULT_PAGE),
        limit=to_positive_int(limit, DEFAULT_LIMIT),
        sort=sort,
        filters=parse_where(request.query_params.multi_items()),
    )
    return ok(result)


@router.get("/{resource_id}", response_model=Envelope[ResourceResponse])
async def get_content(
    resource_id: str,
    user: User | None = Depends(get_optional_user),
    db: AsyncSession = Depends(get_session),
) -> Envelope[ResourceResponse]:
    """A single public resource; audios and subtitles depend on the caller's role."""
    rid = relation_id(resource_id)
    resource = await get_resource(db, rid) if rid is not None else None
    if resource is None or not resource.public:
        msg = "Resource not found"
        raise NotFound(msg)
    return ok(resource_response(resource, user.role if user else None))


@router.post("/purchase/{resource_id}", response_model=Envelope[PurchaseResponse], status_code=201)
async def purchase(
    resource_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Envelope[PurchaseResponse]:
    """Spend points on a resource and add it to the caller's library."""
    rid = relation_id(resource_id)
    if rid is None:
        msg = "ASMR resource not found"
        raise NotFound(msg)
    return ok(await purchase_resource(db, user.id, rid))
