"""Request/response schemas for resource comments."""

from __future__ import annotations

from datetime import datetime

from asmr.schemas import CamelModel


class CommentAuthor(CamelModel):
    id: int
    nickname: str


class CommentResponse(CamelModel):
    """A comment; ``parentId`` is set on replies."""

    id: int
    content: str
    author: CommentAuthor
    resource_id: int
    parent_id: int | None = None
    status: str
    created_at: datetime | None = None


class CommentListResponse(CamelModel):
    docs: list[CommentResponse]
    total_docs: int


class CreateCommentRequest(CamelModel):
    """Body of ``POST /content/{id}/comments``."""

    content: str | None = None
    parent_id: int | None = None
