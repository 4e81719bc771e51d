"""Resource listing, lookup, role-aware serialization and purchases."""

from __future__ import annotations

import math
import re
from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from asmr.access.policy import can_read_sensitive
from asmr.content.schemas import (
    AudioItem,
    ImageItem,
    MediaResponse,
    PurchaseResponse,
    ResourcePage,
    ResourceResponse,
    SubtitleItem,
    TransactionSummary,
)
from asmr.db.models import AsmrResource, MediaAsset, User, UserOwnedResource
from asmr.db.relations import MAX_DB_ID
from asmr.exceptions import (
    AuthenticationRequired,
    Conflict,
    NotFound,
    ServerError,
    UpstreamError,
    ValidationFailed,
)
from asmr.users.service import build_user_response, get_owned_resource_ids

if TYPE_CHECKING:
    from collections.abc import Iterable

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql.elements import ColumnElement

logger = structlog.get_logger()

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100

_SORT_COLUMNS = {
    "id": AsmrResource.id,
    "title": AsmrResource.title,
    "price": AsmrResource.price,
    "created_at": AsmrResource.created_at,
    "createdAt": AsmrResource.created_at,
}


def to_positive_int(value: object, default: int) -> int:
    """Parse a query value as a positive integer (truncating), else ``default``."""
    try:
        number = math.trunc(float(str(value)))
    except (TypeError, ValueError, OverflowError):
        return default
    return number if number > 0 else default


def parse_sort(sort: str | None) -> list[ColumnElement[object]]:
    """
    Translate ``title`` / ``-price`` style sort keys to ORDER BY clauses.

    ``id`` is always appended as a tie-breaker so pages are stable.

    Raises:
        ValidationFailed: Unknown sort key.
    """
    clauses: list[ColumnElement[object]] = []
    if sort:
        descending = sort.startswith("-")
        key = sort.lstrip("-")
        column = _SORT_COLUMNS.get(key)
        if column is None:
            msg = f"Unsupported sort key: {key}"
            raise ValidationFailed(msg, details={"allowed": sorted(_SORT_COLUMNS)})
        clauses.append(column.desc() if descending else column.asc())
    else:
        clauses.append(AsmrResource.created_at.desc())
    clauses.append(AsmrResource.id.asc())
    return clauses


_WHERE_KEY = re.compile(r"^where\[(\w+)\]\[(\w+)\]$")

_PRICE_OPERATORS = {
    "equals": lambda col, v: col == v,
    "not_equals": lambda col, v: col != v,
    "greater_than": lambda col, v: col > v,
    "greater_than_equal": lambda col, v: col >= v,
    "less_than": lambda col, v: col < v,
    "less_than_equal": lambda col, v: col <= v,
}

_TITLE_OPERATORS = {
    "equals": lambda col, v: col == v,
    "like": lambda col, v: col.ilike(f"%{v}%"),
}

# Price is a 32-bit column
_MAX_PRICE_FILTER = 2**31 - 1


def parse_where(params: Iterable[tuple[str, str]]) -> list[ColumnElement[bool]]:
    """
    Translate ``where[field][operator]=value`` query parameters into filters.

    Only ``price`` (comparisons) and ``title`` (``equals``, case-insensitive
    ``like``) can be filtered; other query parameters are ignored. The
    result is ANDed with the public-only condition by the caller.

    Raises:
        ValidationFailed: Unknown field or operator, or a non-integer price.
    """
    filters: list[ColumnElement[bool]] = []
    for key, value in params:
        match = _WHERE_KEY.match(key)
        if match is None:
            continue
        field, operator = match.groups()
        if field == "price":
            build = _PRICE_OPERATORS.get(operator)
            if build is None:
                msg = f"Unsupported operator for price: {operator}"
                raise ValidationFailed(msg, details={"allowed": sorted(_PRICE_OPERATORS)})
            try:
                number = int(value.strip())
            except ValueError as e:
                msg = f"Invalid price filter value: {value}"
                raise ValidationFailed(msg) from e
            if abs(number) > _MAX_PRICE_FILTER:
                msg = f"Invalid price filter value: {value}"
                raise ValidationFailed(msg)
            filters.append(build(AsmrResource.price, number))
        elif field == "title":
            build = _TITLE_OPERATORS.get(operator)
            if build is None:
                msg = f"Unsupported operator for title: {operator}"
                raise ValidationFailed(msg, details={"allowed": sorted(_TITLE_OPERATORS)})
            filters.append(build(AsmrResource.title, value))
        else:
            msg = f"Unsupported filter field: {field}"
            raise ValidationFailed(msg, details={"allowed": ["price", "title"]})
    return filters


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def media_response(media: MediaAsset) -> MediaResponse:
    """Serialize a media asset's metadata."""
    return MediaResponse(
        id=media.id,
        kind=media.kind,
        filename=media.filename,
        mime_type=media.mime_type,
        filesize=media.filesize,
        language=media.language,
        title=media.title,
    )


def resource_response(resource: AsmrResource, role: str | None) -> ResourceResponse:
    """Serialize a resource, hiding audios and subtitles unless the role may read them."""
    sensitive = can_read_sensitive(role, resource.visibility)
    return ResourceResponse(
        id=resource.id,
        title=resource.title,
        description=resource.description,
        price=resource.price,
        public=resource.public,
        visibility=list(resource.visibility or []),
        cover=media_response(resource.cover) if resource.cover is not None else None,
        images=[
            ImageItem(id=img.id, caption=img.caption, image=media_response(img.media))
            for img in resource.images
        ],
        audios=[
            AudioItem(
                id=audio.id,
                order=audio.order,
                title=audio.title,
                duration=audio.duration,
                audio_file=media_response(audio.media),
            )
            for audio in resource.audios
        ]
        if sensitive
        else None,
        subtitles=[
            SubtitleItem(id=sub.id, language=sub.language, subtitle_file=media_response(sub.media))
            for sub in resource.subtitles
        ]
        if sensitive
        else None,
        created_at=resource.created_at,
        updated_at=resource.updated_at,
    )


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------


async def get_resource(db: AsyncSession, resource_id: int) -> AsmrResource | None:
    """Fetch a resource (public or not) with its media eagerly loaded."""
    result = await db.execute(select(AsmrResource).where(AsmrResource.id == resource_id))
    return result.unique().scalar_one_or_none()


async def list_public_resources(
    db: AsyncSession,
    role: str | None,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    sort: str | None = None,
    filters: list[ColumnElement[bool]] | None = None,
) -> ResourcePage:
    """
    One page of public resources, narrowed by ``filters`` (see ``parse_where``).

    Raises:
        ValidationFailed: Unknown sort key.
        UpstreamError: The database could not be queried.
    """
    limit = min(limit, MAX_LIMIT)
    # OFFSET is bound as a BIGINT
    page = min(page, MAX_DB_ID // limit)
    order_by = parse_sort(sort)
    conditions = [AsmrResource.public.is_(True), *(filters or [])]

    try:
        total = await db.scalar(select(func.count()).select_from(AsmrResource).where(*conditions))
        result = await db.execute(
            select(AsmrResource)
            .where(*conditions)
            .order_by(*order_by)
            .offset((page - 1) * limit)
            .limit(limit)
        )
        resources = list(result.unique().scalars().all())
    except SQLAlchemyError as e:
        logger.error("content_list_failed", error=str(e))
        msg = "Content store unavailable"
        raise UpstreamError(msg) from e

    total_docs = int(total or 0)
    total_pages = math.ceil(total_docs / limit)
    has_next = page < total_pages
    has_prev = page > 1
    return ResourcePage(
        docs=[resource_response(r, role) for r in resources],
        total_docs=total_docs,
        limit=limit,
        page=page,
        total_pages=total_pages,
        has_next_page=has_next,
        has_prev_page=has_prev,
        next_page=page + 1 if has_next else None,
        prev_page=page - 1 if has_prev else None,
    )


# ---------------------------------------------------------------------------
# Purchase
# ---------------------------------------------------------------------------


def _insufficient_points(price: int, points: int) -> ValidationFailed:
    msg = f"You need {price} points to purchase this resource, but you only have {points} points"
    return ValidationFailed(msg, details={"required": price, "available": points})


async def debit_and_grant(
    db: AsyncSession,
    user_id: int,
    resource_id: int,
    price: int,
    *,
    purchased_at: datetime | None = None,
) -> bool:
    """
    Deduct ``price`` points and record ownership in the current transaction.

    The debit is a single conditional UPDATE: it only matches while the user
    still has enough points and does not own the resource yet. Returns False
    when it matched nothing; the caller decides whether to roll back.

    Raises:
        IntegrityError: The ownership row was inserted concurrently.
    """
    already_owned = (
        select(UserOwnedResource.user_id)
        .where(UserOwnedResource.user_id == user_id)
        .where(UserOwnedResource.resource_id == resource_id)
        .exists()
    )
    result = await db.execute(
        update(User)
        .where(User.id == user_id)
        .where(User.points >= price)
        .where(~already_owned)
        .values(points=User.points - price)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        return False

    db.add(
        UserOwnedResource(
            user_id=user_id,
            resource_id=resource_id,
            price_paid=price,
            purchased_at=purchased_at or datetime.now(timezone.utc),
        )
    )
    await db.flush()
    return True


async def purchase_resource(db: AsyncSession, user_id: int, resource_id: int) -> PurchaseResponse:
    """
    Buy a resource with points.

    Checks run in a fixed order: resource exists, caller still exists, not
    already owned, purchasable price, enough points. The write itself goes
    through ``debit_and_grant``; a request that loses a race against a
    concurrent purchase is rejected with the error the fresh state implies.

    Raises:
        NotFound: Unknown resource.
        AuthenticationRequired: The caller's account could not be loaded.
        Conflict: The caller already owns the resource.
        ValidationFailed: Free resource or not enough points.
        ServerError: The write failed.
    """
    resource = await get_resource(db, resource_id)
    if resource is None:
        msg = "ASMR resource not found"
        raise NotFound(msg)

    user = await db.get(User, user_id, populate_existing=True)
    if user is None:
        msg = "Invalid authentication token"
        raise AuthenticationRequired(msg)

    owned = await get_owned_resource_ids(db, user.id)
    if resource.id in owned:
        logger.info("purchase_rejected", user_id=user.id, resource_id=resource.id, reason="already_owned")
        msg = "You already own this ASMR resource"
        raise Conflict(msg)

    price = resource.price
    if price <= 0:
        msg = "The resource is not allowed to purchase"
        raise ValidationFailed(msg)

    if user.points < price:
        logger.info("purchase_rejected", user_id=user.id, resource_id=resource.id, reason="insufficient_points")
        raise _insufficient_points(price, user.points)

    purchased_at = datetime.now(timezone.utc)
    try:
        granted = await debit_and_grant(db, user.id, resource.id, price, purchased_at=purchased_at)
        if granted:
            await db.commit()
    except IntegrityError:
        granted = False
    except SQLAlchemyError as e:
        await db.rollback()
        logger.error("purchase_failed", user_id=user_id, resource_id=resource_id, error=str(e))
        msg = "Failed to complete purchase"
        raise ServerError(msg) from e

    if not granted:
        await db.rollback()
        await db.refresh(user)
        logger.info("purchase_rejected", user_id=user_id, resource_id=resource_id, reason="concurrent_update")
        if resource_id in await get_owned_resource_ids(db, user_id):
            msg = "You already own this ASMR resource"
            raise Conflict(msg)
        raise _insufficient_points(price, user.points)

    await db.refresh(user)
    logger.info(
        "purchase_completed",
        user_id=user.id,
        resource_id=resource.id,
        points_deducted=price,
        remaining_points=user.points,
    )
    return PurchaseResponse(
        user=await build_user_response(db, user),
        resource=resource_response(resource, user.role),
        transaction=TransactionSummary(
            points_deducted=price,
            remaining_points=user.points,
            purchase_time=purchased_at,
        ),
    )
