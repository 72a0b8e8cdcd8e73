"""Comment services: posting, paging and abuse flagging."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import delete, desc, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from frostwatch.core.errors import (
    CommentNotFoundError,
    DuplicateReportFlagError,
    InvalidCommentError,
    ReportNotFoundError,
    StorageUnavailableError,
)
from frostwatch.core.settings import settings
from frostwatch.db.time import utcnow
from frostwatch.models import Comment, CommentReport, Report
from frostwatch.services.identity import VoterIdentity

logger = logging.getLogger(__name__)

_ESCAPES = {
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#x27;",
    "/": "&#x2F;",
}


def validate_comment(content: str | None, max_length: int | None = None) -> str:
    """Return the trimmed comment or raise :class:`InvalidCommentError`."""
    limit = settings.max_comment_length if max_length is None else max_length
    if not content or not content.strip():
        raise InvalidCommentError("Comment cannot be empty")
    trimmed = content.strip()
    if len(trimmed) > limit:
        raise InvalidCommentError(f"Comment must be less than {limit} characters")
    return trimmed


def sanitize_comment(content: str) -> str:
    """Trim and HTML-escape comment text."""
    return "".join(_ESCAPES.get(ch, ch) for ch in content.strip())


@dataclass(frozen=True)
class CommentPage:
    comments: list[Comment]
    page: int
    has_more: bool


class CommentService:
    """Service handling comment creation and moderation flags."""

    def __init__(self, db: Session, *, clock: Callable[[], datetime] = utcnow) -> None:
        self.db = db
        self.clock = clock

    def create_comment(self, report_id: str, content: str, identity: VoterIdentity) -> Comment:
        """Attach a comment to a report.

        Raises:
            InvalidCommentError: If the text is empty or too long
            ReportNotFoundError: If the report does not exist
            StorageUnavailableError: If the insert fails
        """
        text = sanitize_comment(validate_comment(content))
        if self.db.get(Report, report_id) is None:
            raise ReportNotFoundError("Report not found")

        comment = Comment(
            report_id=report_id,
            content=text,
            fingerprint_hash=identity.fingerprint_hash,
            ip_hash=identity.ip_hash,
            created_at=self.clock(),
            report_count=0,
        )
        try:
            self.db.add(comment)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to store comment: %s", e, exc_info=True)
            raise StorageUnavailableError("Could not store comment") from e
        return comment

    def list_comments(self, report_id: str, page: int = 0) -> CommentPage:
        """Return one page of a report's comments, newest first."""
        per_page = settings.comments_per_page
        page = max(page, 0)
        offset = page * per_page
        try:
            total = self.db.scalar(
                select(func.count()).select_from(Comment).where(Comment.report_id == report_id)
            ) or 0
            rows = self.db.scalars(
                select(Comment)
                .where(Comment.report_id == report_id)
                .order_by(desc(Comment.created_at))
                .offset(offset)
                .limit(per_page)
            ).all()
        except SQLAlchemyError as e:
            raise StorageUnavailableError("Could not load comments") from e
        return CommentPage(comments=list(rows), page=page, has_more=total > offset + per_page)

    def flag_comment(self, comment_id: str, identity: VoterIdentity) -> Comment | None:
        """Record an abuse flag from ``identity``.

        Returns:
            The updated comment, or None once it reached the auto-delete
            threshold and was removed

        Raises:
            CommentNotFoundError: If the comment does not exist
            DuplicateReportFlagError: If the identity already flagged it
        """
        comment = self.db.get(Comment, comment_id)
        if comment is None:
            raise CommentNotFoundError("Comment not found")

        existing = self.db.scalars(
            select(CommentReport).where(
                CommentReport.comment_id == comment_id,
                CommentReport.fingerprint_hash == identity.fingerprint_hash,
                CommentReport.ip_hash == identity.ip_hash,
            )
        ).first()
        if existing is not None:
            raise DuplicateReportFlagError("You already reported this comment")

        try:
            self.db.add(
                CommentReport(
                    comment_id=comment_id,
                    fingerprint_hash=identity.fingerprint_hash,
                    ip_hash=identity.ip_hash,
                    created_at=self.clock(),
                )
            )
            self.db.flush()
            flag_count = self.db.scalar(
                select(func.count())
                .select_from(CommentReport)
                .where(CommentReport.comment_id == comment_id)
            ) or 0
            comment.report_count = flag_count

            deleted = flag_count >= settings.comment_auto_delete_threshold
            if deleted:
                self.db.execute(delete(CommentReport).where(CommentReport.comment_id == comment_id))
                self.db.delete(comment)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            raise DuplicateReportFlagError("You already reported this comment") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Failed to flag comment %s: %s", comment_id, e, exc_info=True)
            raise StorageUnavailableError("Could not flag comment") from e

        if deleted:
            logger.info("Comment %s removed after %d flags", comment_id, flag_count)
            return None
        return comment
