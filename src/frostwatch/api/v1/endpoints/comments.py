# src/frostwatch/api/v1/endpoints/comments.py
"""Comment endpoints for the Frostwatch API."""

from typing import Annotated

from fastapi import APIRouter, Query, status

from frostwatch.core.errors import FrostwatchError
from frostwatch.schemas.comment import (
    CommentCreate,
    CommentFlag,
    CommentFlagResponse,
    CommentPageResponse,
    CommentResponse,
)
from frostwatch.services.comments import CommentService

from ..dependencies import SessionDep, http_error, identity_from

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("/{report_id}", response_model=CommentPageResponse)
async def list_comments(
    report_id: str,
    db: SessionDep,
    page: Annotated[int, Query(ge=0)] = 0,
) -> CommentPageResponse:
    """Return one page of a report's comments, newest first."""
    try:
        result = CommentService(db).list_comments(report_id, page)
    except FrostwatchError as exc:
        raise http_error(exc) from exc
    return CommentPageResponse(
        comments=[CommentResponse.model_validate(comment) for comment in result.comments],
        page=result.page,
        has_more=result.has_more,
    )


@router.post("/", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(comment_data: CommentCreate, db: SessionDep) -> CommentResponse:
    """Attach a comment to a report."""
    try:
        comment = CommentService(db).create_comment(
            comment_data.report_id,
            comment_data.content,
            identity_from(comment_data),
        )
    except FrostwatchError as exc:
        raise http_error(exc) from exc
    return CommentResponse.model_validate(comment)


@router.post("/{comment_id}/flag", response_model=CommentFlagResponse)
async def flag_comment(comment_id: str, flag: CommentFlag, db: SessionDep) -> CommentFlagResponse:
    """Flag a comment as abusive; enough flags remove it."""
    try:
        comment = CommentService(db).flag_comment(comment_id, identity_from(flag))
    except FrostwatchError as exc:
        raise http_error(exc) from exc
    if comment is None:
        return CommentFlagResponse(comment_id=comment_id, deleted=True, report_count=0)
    return CommentFlagResponse(
        comment_id=comment_id,
        deleted=False,
        report_count=comment.report_count,
    )
