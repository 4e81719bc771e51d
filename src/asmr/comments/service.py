"""Comments on ASMR resources: public listing of approved ones and moderated submission."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import structlog
from sqlalchemy import select

from asmr.comments.schemas import CommentAuthor, CommentResponse
from asmr.db.models import AsmrResource, Comment, User
from asmr.db.relations import relation_id
from asmr.exceptions import NotFound, ValidationFailed

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

logger = structlog.get_logger()

MAX_COMMENT_LENGTH = 2000


def comment_response(comment: Comment) -> CommentResponse:
    return CommentResponse(
        id=comment.id,
        content=comment.content,
        author=CommentAuthor(id=comment.author.id, nickname=comment.author.nickname),
        resource_id=comment.resource_id,
        parent_id=comment.parent_id,
        status=comment.status,
        created_at=comment.created_at,
    )


async def _require_public_resource(db: AsyncSession, resource_id: int) -> None:
    public = await db.scalar(select(AsmrResource.public).where(AsmrResource.id == resource_id))
    if not public:
        msg = "Resource not found"
        raise NotFound(msg)


async def list_approved_comments(db: AsyncSession, resource_id: int) -> list[Comment]:
    """
    Approved comments of a public resource, oldest first.

    Replies are returned flat; clients nest them through ``parent_id``.

    Raises:
        NotFound: Unknown or non-public resource.
    """
    await _require_public_resource(db, resource_id)
    result = await db.execute(
        select(Comment)
        .where(Comment.resource_id == resource_id)
        .where(Comment.status == "approved")
        .order_by(Comment.created_at.asc(), Comment.id.asc())
    )
    return list(result.unique().scalars().all())


async def add_comment(
    db: AsyncSession,
    author: User,
    resource_id: int,
    content: str | None,
    parent_id: int | None = None,
) -> Comment:
    """
    Submit a comment (or a reply to ``parent_id``) for moderation.

    The comment starts ``pending`` and is not listed until approved. The
    caller commits.

    Raises:
        NotFound: Unknown or non-public resource.
        ValidationFailed: Empty or oversized content, or a parent that is not
            a comment on the same resource.
    """
    await _require_public_resource(db, resource_id)

    text = (content or "").strip()
    if not text:
        msg = "Comment content is required"
        raise ValidationFailed(msg)
    if len(text) > MAX_COMMENT_LENGTH:
        msg = f"Comment must be at most {MAX_COMMENT_LENGTH} characters"
        raise ValidationFailed(msg)

    if parent_id is not None:
        parent = relation_id(parent_id)
        parent_resource = (
            await db.scalar(select(Comment.resource_id).where(Comment.id == parent)) if parent is not None else None
        )
        if parent_resource != resource_id:
            msg = "Parent comment not found on this resource"
            raise ValidationFailed(msg)

    now = datetime.now(timezone.utc)
    comment = Comment(
        content=text,
        author=author,
        resource_id=resource_id,
        parent_id=parent_id,
        status="pending",
        created_at=now,
        updated_at=now,
    )
    db.add(comment)
    await db.flush()
    logger.info("comment_submitted", comment_id=comment.id, resource_id=resource_id, author_id=author.id)
    return comment
