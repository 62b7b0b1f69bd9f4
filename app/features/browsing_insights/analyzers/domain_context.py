"""
Domain context classification for hoarder detection.

Decides which family of heuristics governs a resource and whether strict
or lenient scoring applies. The rule table is ordered; the first domain
family that matches wins.
"""

import re
from urllib.parse import urlparse

from app.features.browsing_insights.domain.models import DomainContext, DomainType, TabMetadata

PRODUCTIVITY_TOOLS = (
    "mail.google.com",
    "gmail.com",
    "calendar.google.com",
    "outlook.com",
    "outlook.live.com",
    "notion.so",
    "slack.com",
    "discord.com",
    "teams.microsoft.com",
    "todoist.com",
    "trello.com",
    "asana.com",
    "linear.app",
    "figma.com",
    "miro.com",
)

CONTENT_SITES = (
    "medium.com",
    "dev.to",
    "substack.com",
    "news.ycombinator.com",
    "reddit.com",
    "twitter.com",
    "x.com",
    "youtube.com",
    "vimeo.com",
    "instagram.com",
)

CODE_PLATFORMS = (
    "github.com",
    "gitlab.com",
    "bitbucket.org",
)

# Entries ending with "." match as a host prefix (docs.python.org, developer.mozilla.org)
DOCUMENTATION_SITES = (
    "stackoverflow.com",
    "stackexchange.com",
    "readthedocs.io",
    "docs.",
    "developer.",
    "api.",
)

DOMAIN_RULES: tuple[tuple[DomainType, tuple[str, ...]], ...] = (
    (DomainType.PRODUCTIVITY_TOOL, PRODUCTIVITY_TOOLS),
    (DomainType.CONTENT_SITE, CONTENT_SITES),
    (DomainType.CODE_PLATFORM, CODE_PLATFORMS),
    (DomainType.DOCUMENTATION, DOCUMENTATION_SITES),
)

ACTIVE_WORK_PATTERN = re.compile(
    r"/(pull|pulls|issues|commits|compare|merge_requests)(/|$)", re.IGNORECASE
)
OCCASIONAL_VISIT_MAX = 2


def matches_domain(domain: str, pattern: str) -> bool:
    """Exact or subdomain match, or host-prefix match for patterns ending in '.'."""
    if pattern.endswith("."):
        return domain.startswith(pattern)
    return domain == pattern or domain.endswith(f".{pattern}")


def classify_domain(domain: str | None) -> DomainType:
    normalized = (domain or "").lower().strip()
    if normalized.startswith("www."):
        normalized = normalized[4:]
    for domain_type, patterns in DOMAIN_RULES:
        if any(matches_domain(normalized, pattern) for pattern in patterns):
            return domain_type
    return DomainType.GENERAL


def looks_like_active_work(url: str | None) -> bool:
    """Pull request / issue / commit paths on a code platform."""
    path = urlparse(url or "").path
    return bool(ACTIVE_WORK_PATTERN.search(path))


class DomainContextClassifier:
    """Maps a domain/url pair plus tab metadata onto a DomainContext."""

    def analyze(self, domain: str | None, url: str | None, tab_metadata: TabMetadata) -> DomainContext:
        domain_type = classify_domain(domain or tab_metadata.domain)
        handler = {
            DomainType.PRODUCTIVITY_TOOL: self._productivity_tool,
            DomainType.CONTENT_SITE: self._content_site,
            DomainType.CODE_PLATFORM: self._code_platform,
            DomainType.DOCUMENTATION: self._documentation,
        }.get(domain_type, self._general)

        strict, lenient, notes = handler(url or tab_metadata.url, tab_metadata)
        return DomainContext(
            domain_type=domain_type,
            should_apply_strict_rules=strict,
            should_apply_lenient_rules=lenient,
            context_notes=tuple(notes),
        )

    @staticmethod
    def _productivity_tool(url: str, meta: TabMetadata) -> tuple[bool, bool, list[str]]:
        if meta.days_since_last_activity < 1:
            return False, True, ["Productivity tool with recent activity - likely intentional"]
        return False, False, [
            "Productivity tool with no recent activity - possible forgotten tab"
        ]

    @staticmethod
    def _content_site(url: str, meta: TabMetadata) -> tuple[bool, bool, list[str]]:
        if meta.is_single_visit:
            return True, False, ['Content site visited once - classic "read later" pattern']
        return False, False, [f"Content site revisited {meta.visit_count} times"]

    @staticmethod
    def _code_platform(url: str, meta: TabMetadata) -> tuple[bool, bool, list[str]]:
        if looks_like_active_work(url):
            return False, True, ["Active work in progress (pull request/issue)"]
        if meta.visit_count <= OCCASIONAL_VISIT_MAX:
            return True, False, ["Arbitrary repository visited occasionally - potential hoarder"]
        return False, False, [f"Repository revisited {meta.visit_count} times"]

    @staticmethod
    def _documentation(url: str, meta: TabMetadata) -> tuple[bool, bool, list[str]]:
        if meta.visit_count > 1:
            return False, True, ["Frequently revisited documentation - likely a reference"]
        return True, False, ["Documentation visited once - possible unread article"]

    @staticmethod
    def _general(url: str, meta: TabMetadata) -> tuple[bool, bool, list[str]]:
        return False, False, ["General site - default scoring"]


domain_context_classifier = DomainContextClassifier()
