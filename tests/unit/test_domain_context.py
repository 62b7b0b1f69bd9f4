from dataclasses import replace
from datetime import UTC, datetime

import pytest

from app.features.browsing_insights.analyzers.domain_context import (
    DomainContextClassifier,
    classify_domain,
)
from app.features.browsing_insights.domain.models import (
    DomainContext,
    DomainType,
    TabMetadata,
    TabStatus,
    VisitRecord,
)

NOW = datetime(2025, 10, 15, 12, 0, tzinfo=UTC)


def _build_meta(**overrides) -> TabMetadata:
    visit = VisitRecord(
        id="visit-1",
        user_id="user-123",
        url="https://example.com/",
        domain="example.com",
        title="Example",
        visited_at=NOW,
    )
    meta = TabMetadata(
        url="https://example.com/",
        domain="example.com",
        title="Example",
        visit_count=1,
        is_single_visit=True,
        first_visited_at=NOW,
        last_visited_at=NOW,
        tab_age_days=5.0,
        days_since_last_activity=5.0,
        total_duration_seconds=60,
        total_engagement_seconds=5,
        average_engagement_rate=0.05,
        tab_status=TabStatus.UNKNOWN,
        is_likely_still_open=False,
        is_pinned=False,
        most_recent_visit=visit,
    )
    if "visit_count" in overrides and "is_single_visit" not in overrides:
        overrides["is_single_visit"] = overrides["visit_count"] == 1
    return replace(meta, **overrides)


classifier = DomainContextClassifier()


@pytest.mark.parametrize(
    ("domain", "expected"),
    [
        ("mail.google.com", DomainType.PRODUCTIVITY_TOOL),
        ("app.slack.com", DomainType.PRODUCTIVITY_TOOL),
        ("www.notion.so", DomainType.PRODUCTIVITY_TOOL),
        ("medium.com", DomainType.CONTENT_SITE),
        ("someone.substack.com", DomainType.CONTENT_SITE),
        ("github.com", DomainType.CODE_PLATFORM),
        ("docs.python.org", DomainType.DOCUMENTATION),
        ("stackoverflow.com", DomainType.DOCUMENTATION),
        ("example.com", DomainType.GENERAL),
        ("notgithub.com", DomainType.GENERAL),
        ("", DomainType.GENERAL),
        (None, DomainType.GENERAL),
    ],
)
def test_classify_domain(domain, expected):
    assert classify_domain(domain) == expected


def test_productivity_tool_with_recent_activity_is_lenient():
    context = classifier.analyze(
        "mail.google.com", "https://mail.google.com/mail/u/0", _build_meta(days_since_last_activity=0.2)
    )

    assert context.domain_type == DomainType.PRODUCTIVITY_TOOL
    assert context.should_apply_lenient_rules is True
    assert context.should_apply_strict_rules is False


def test_stale_productivity_tool_is_neither():
    context = classifier.analyze(
        "mail.google.com", "https://mail.google.com/mail/u/0", _build_meta(days_since_last_activity=3)
    )

    assert context.should_apply_lenient_rules is False
    assert context.should_apply_strict_rules is False
    assert context.context_notes


def test_single_visit_content_site_is_strict():
    context = classifier.analyze("medium.com", "https://medium.com/@a/post", _build_meta())

    assert context.domain_type == DomainType.CONTENT_SITE
    assert context.should_apply_strict_rules is True
    assert "read later" in context.context_notes[0]


def test_revisited_content_site_is_neither():
    context = classifier.analyze("medium.com", "https://medium.com/@a/post", _build_meta(visit_count=4))

    assert context.should_apply_strict_rules is False
    assert context.should_apply_lenient_rules is False


@pytest.mark.parametrize(
    "url",
    [
        "https://github.com/org/repo/pull/42",
        "https://github.com/org/repo/issues/7",
        "https://github.com/org/repo/commits/main",
        "https://github.com/org/repo/compare/a...b",
        "https://gitlab.com/group/project/-/merge_requests/3",
    ],
)
def test_code_platform_active_work_is_lenient(url):
    domain = url.split("/")[2]
    context = classifier.analyze(domain, url, _build_meta(domain=domain, url=url))

    assert context.domain_type == DomainType.CODE_PLATFORM
    assert context.should_apply_lenient_rules is True
    assert "Active work" in context.context_notes[0]


@pytest.mark.parametrize(("visit_count", "strict"), [(1, True), (2, True), (3, False)])
def test_code_platform_repository_visits(visit_count, strict):
    url = "https://github.com/someone/some-repo"
    context = classifier.analyze("github.com", url, _build_meta(visit_count=visit_count))

    assert context.should_apply_strict_rules is strict
    assert context.should_apply_lenient_rules is False


def test_documentation_revisited_is_lenient():
    context = classifier.analyze(
        "docs.python.org", "https://docs.python.org/3/library/", _build_meta(visit_count=3)
    )

    assert context.domain_type == DomainType.DOCUMENTATION
    assert context.should_apply_lenient_rules is True


def test_documentation_single_visit_is_strict():
    context = classifier.analyze("docs.python.org", "https://docs.python.org/3/library/", _build_meta())

    assert context.should_apply_strict_rules is True


def test_general_site_uses_default_scoring():
    context = classifier.analyze("example.com", "https://example.com/", _build_meta())

    assert context.domain_type == DomainType.GENERAL
    assert context.should_apply_strict_rules is False
    assert context.should_apply_lenient_rules is False
    assert context.context_notes


def test_strict_and_lenient_are_mutually_exclusive():
    with pytest.raises(ValueError):
        DomainContext(
            domain_type=DomainType.GENERAL,
            should_apply_strict_rules=True,
            should_apply_lenient_rules=True,
            context_notes=(),
        )


def test_context_notes_are_immutable():
    context = classifier.analyze("medium.com", "https://medium.com/@a/post", _build_meta())

    assert isinstance(context.context_notes, tuple)
    assert hash(context) == hash(classifier.analyze("medium.com", "https://medium.com/@a/post", _build_meta()))
