"""Comment endpoints: /content/{id}/comments."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from asmr.auth.dependencies import get_current_user
from asmr.comments.schemas import CommentListResponse, CommentResponse, CreateCommentRequest
from asmr.comments.service import add_comment, comment_response, list_approved_comments
from asmr.database import get_session
from asmr.db.models import User
from asmr.db.relations import relation_id
from asmr.exceptions import NotFound
from asmr.schemas import Envelope, ok

router = APIRouter(prefix="/content", tags=["Comments"])


def _resource_id(value: str) -> int:
    rid = relation_id(value)
    if rid is None:
        msg = "Resource not found"
        raise NotFound(msg)
    return rid


@router.get("/{resource_id}/comments", response_model=Envelope[CommentListResponse])
async def list_comments(
    resource_id: str,
    db: AsyncSession = Depends(get_session),
) -> Envelope[CommentListResponse]:
    """Approved comments of a public resource; open to everyone."""
    comments = await list_approved_comments(db, _resource_id(resource_id))
    return ok(CommentListResponse(docs=[comment_response(c) for c in comments], total_docs=len(comments)))


@router.post("/{resource_id}/comments", response_model=Envelope[CommentResponse], status_code=201)
async def create_comment(
    resource_id: str,
    body: CreateCommentRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_session),
) -> Envelope[CommentResponse]:
    """Submit a comment for moderation; it stays hidden until approved."""
    comment = await add_comment(db, user, _resource_id(resource_id), body.content, body.parent_id)
    await db.commit()
    return ok(comment_response(comment))
