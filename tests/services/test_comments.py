"""Tests for comment posting, paging and abuse flags."""

from datetime import timedelta

import pytest
from sqlalchemy import select

from frostwatch.core.errors import (
    CommentNotFoundError,
    DuplicateReportFlagError,
    InvalidCommentError,
    ReportNotFoundError,
)
from frostwatch.core.settings import settings
from frostwatch.models import Comment, CommentReport
from frostwatch.services.comments import CommentService, sanitize_comment, validate_comment
from tests.conftest import make_identity


@pytest.fixture()
def service(db_session, clock):
    return CommentService(db_session, clock=clock)


def test_validate_comment_trims() -> None:
    assert validate_comment("  hello  ") == "hello"


@pytest.mark.parametrize("content", ["", "   ", None])
def test_empty_comment_rejected(content) -> None:
    with pytest.raises(InvalidCommentError, match="empty"):
        validate_comment(content)


def test_long_comment_rejected() -> None:
    validate_comment("x" * 500)
    with pytest.raises(InvalidCommentError, match="500"):
        validate_comment("x" * 501)


def test_sanitize_escapes_html() -> None:
    assert sanitize_comment("<b>'hi'</b> & \"bye\"") == (
        "&lt;b&gt;&#x27;hi&#x27;&lt;&#x2F;b&gt; & &quot;bye&quot;"
    )


def test_create_comment(service, report, identity) -> None:
    comment = service.create_comment(report.id, "  <i>slippery</i> ", identity)
    assert comment.content == "&lt;i&gt;slippery&lt;&#x2F;i&gt;"
    assert comment.fingerprint_hash == identity.fingerprint_hash
    assert comment.report_count == 0


def test_comment_on_unknown_report(service, identity) -> None:
    with pytest.raises(ReportNotFoundError):
        service.create_comment("missing", "hello", identity)


def test_list_comments_pages_newest_first(service, report, identity, clock) -> None:
    per_page = settings.comments_per_page
    for i in range(per_page + 5):
        service.create_comment(report.id, f"comment {i}", identity)
        clock.advance(seconds=1)

    first = service.list_comments(report.id)
    assert len(first.comments) == per_page
    assert first.has_more is True
    assert first.comments[0].content == f"comment {per_page + 4}"

    second = service.list_comments(report.id, page=1)
    assert len(second.comments) == 5
    assert second.has_more is False
    assert second.comments[-1].content == "comment 0"


def test_flag_comment_counts_flags(service, report, identity) -> None:
    comment = service.create_comment(report.id, "hello", identity)
    flagged = service.flag_comment(comment.id, make_identity(2))
    assert flagged is not None
    assert flagged.report_count == 1


def test_flag_comment_twice_rejected(service, report, identity, db_session) -> None:
    comment = service.create_comment(report.id, "hello", identity)
    service.flag_comment(comment.id, make_identity(2))
    with pytest.raises(DuplicateReportFlagError):
        service.flag_comment(comment.id, make_identity(2))
    assert db_session.get(Comment, comment.id).report_count == 1


def test_flag_unknown_comment(service) -> None:
    with pytest.raises(CommentNotFoundError):
        service.flag_comment("missing", make_identity(2))


def test_comment_removed_at_threshold(service, report, identity, db_session) -> None:
    threshold = settings.comment_auto_delete_threshold
    comment = service.create_comment(report.id, "spam", identity)
    for seed in range(threshold - 1):
        assert service.flag_comment(comment.id, make_identity(100 + seed)) is not None

    assert service.flag_comment(comment.id, make_identity(999)) is None
    assert db_session.get(Comment, comment.id) is None
    assert db_session.scalars(select(CommentReport)).all() == []


def test_comment_timestamps_use_clock(service, report, identity, clock) -> None:
    clock.advance(minutes=5)
    comment = service.create_comment(report.id, "hello", identity)
    assert comment.created_at == clock.now
    assert comment.created_at - report.created_at == timedelta(minutes=5)
