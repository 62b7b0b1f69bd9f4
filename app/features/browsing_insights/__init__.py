"""
Browsing insights feature package.

Behavioural analysis over page visits and tab closures written by the
browser extension's sync pipeline: serial openers, hoarder tabs and
recent activity sessions. Domain models, calculators, analyzers,
pipelines, the repository and the API router live side by side.
"""

from .api.router import router as insights_router  # noqa: F401
from .errors import InvalidArgument, InvalidDateRange  # noqa: F401
