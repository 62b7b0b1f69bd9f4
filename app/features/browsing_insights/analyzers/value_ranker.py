"""
Ranks hoarder tabs by likely value to the user rather than raw score.

Old, long-form content ("forgotten gems") ranks above ephemeral pages
such as search results and social feeds.
"""

import re
from typing import Any

CONTENT_TYPE_WEIGHTS = {
    "article": 1.5,
    "documentation": 1.5,
    "tutorial": 1.5,
    "blog_post": 1.4,
    "code_review": 1.2,
    "issue_tracker": 1.1,
    "project_page": 1.0,
    "search_results": 0.7,
    "social_media": 0.6,
    "news_feed": 0.6,
    "unknown": 1.0,
}

# (minimum age in days, multiplier), checked in order
AGE_WEIGHTS = (
    (7.0, 1.5),
    (5.0, 1.3),
    (3.0, 1.0),
    (1.0, 0.7),
)
FRESH_TAB_WEIGHT = 0.5

CODE_HOSTS = ("github.com", "gitlab.com")
SOCIAL_DOMAINS = (
    "twitter.com",
    "x.com",
    "facebook.com",
    "instagram.com",
    "linkedin.com",
    "tiktok.com",
    "reddit.com",
)
SEARCH_ENGINES = ("google.com", "bing.com", "duckduckgo.com")
NEWS_MARKERS = ("news", "hackernews", "nytimes.com", "cnn.com", "bbc.com")

_DOCS_DOMAIN = re.compile(r"(^|\.)(docs|developer|api)\.")
_ARTICLE_DOMAIN = re.compile(r"medium\.com|dev\.to|substack\.com|(^|\.)blog\.")
_TUTORIAL_PATH = re.compile(r"/tutorials?/")
_BLOG_PATH = re.compile(r"/blog/|/post/")
_ARTICLE_PATH = re.compile(r"/articles?/")
_REVIEW_PATH = re.compile(r"/(pull|merge_requests)/")


def age_weight(age_days: float | None) -> float:
    if age_days is None:
        return 1.0
    for minimum, multiplier in AGE_WEIGHTS:
        if age_days >= minimum:
            return multiplier
    return FRESH_TAB_WEIGHT


def classify_content_type(domain: str | None, url: str | None) -> str:
    domain = (domain or "").lower()
    url = (url or "").lower()

    if _DOCS_DOMAIN.search(domain) or "stackoverflow.com" in domain or "readthedocs.io" in domain:
        return "documentation"
    if _TUTORIAL_PATH.search(url):
        return "tutorial"
    if _BLOG_PATH.search(url):
        return "blog_post"
    if _ARTICLE_DOMAIN.search(domain) or _ARTICLE_PATH.search(url):
        return "article"

    on_code_host = any(host in domain for host in CODE_HOSTS)
    if on_code_host and _REVIEW_PATH.search(url):
        return "code_review"
    if on_code_host and "/issues/" in url:
        return "issue_tracker"
    if on_code_host:
        return "project_page"

    if any(social in domain for social in SOCIAL_DOMAINS):
        return "social_media"
    if any(engine in domain for engine in SEARCH_ENGINES) and "mail." not in domain:
        return "search_results"
    if any(marker in domain for marker in NEWS_MARKERS):
        return "news_feed"
    return "unknown"


def content_type_weight(domain: str | None, url: str | None) -> float:
    return CONTENT_TYPE_WEIGHTS.get(classify_content_type(domain, url), 1.0)


class ValueRanker:
    def value_rank(self, hoarder_score: int | None, tab_age_days: float | None, domain: str | None, url: str | None) -> float:
        """hoarder_score * age weight * content weight, rounded to 2 decimals."""
        return round(
            (hoarder_score or 0) * age_weight(tab_age_days) * content_type_weight(domain, url), 2
        )

    def rank(self, tabs: list[dict[str, Any]]) -> list[dict[str, Any]]:
        """Attach ``value_rank`` and ``value_breakdown`` and sort by value, highest first."""
        ranked = []
        for tab in tabs:
            value = self.value_rank(
                tab.get("hoarder_score"), tab.get("tab_age_days"), tab.get("domain"), tab.get("url")
            )
            ranked.append(
                {
                    **tab,
                    "value_rank": value,
                    "value_breakdown": {
                        "base_score": tab.get("hoarder_score") or 0,
                        "age_weight": age_weight(tab.get("tab_age_days")),
                        "content_weight": content_type_weight(tab.get("domain"), tab.get("url")),
                        "final_value": value,
                    },
                }
            )
        return sorted(ranked, key=lambda tab: -tab["value_rank"])


value_ranker = ValueRanker()
