"""Architectural category classification from file paths.

Categories are decided by path markers alone, so the result is a pure
function of the path string. Rules are evaluated in order, first match wins.
"""
from enum import Enum
from typing import Optional, Tuple

from refscan.config import NO_DOMAIN_SCOPE


class Category(str, Enum):
    API = 'api'
    SERVICE = 'service'
    INTERNAL = 'internal'
    TEST = 'test'
    DATABASE = 'database'


# Path markers, matched against the lower-cased '/'-separated path
API_MARKERS: Tuple[str, ...] = ('/api/',)
DATABASE_MARKERS: Tuple[str, ...] = ('/database/',)
TEST_MARKERS: Tuple[str, ...] = ('/__tests__/', '/tests/', '/test/', '.test.', '.spec.')
SERVICE_MARKERS: Tuple[str, ...] = ('/domains/', '/services/')

# Precedence order for categorize()
CATEGORY_RULES: Tuple[Tuple[Category, Tuple[str, ...]], ...] = (
    (Category.API, API_MARKERS),
    (Category.DATABASE, DATABASE_MARKERS),
    (Category.TEST, TEST_MARKERS),
    (Category.SERVICE, SERVICE_MARKERS),
)


def normalize_path(file_path: str) -> str:
    """Lower-case and convert backslashes to '/'."""
    return str(file_path).replace('\\', '/').lower()


def categorize(file_path: str) -> Category:
    """Map a path to its architectural category.

    Callers pass the project-relative path with a leading '/' so that
    directories above the project root cannot affect the result.
    """
    path = normalize_path(file_path)
    for category, markers in CATEGORY_RULES:
        if any(marker in path for marker in markers):
            return category
    return Category.INTERNAL


def domain_of(file_path: str) -> Optional[str]:
    """Domain segment of a service path: the segment right after the service marker.

    /src/domains/billing/invoice.ts -> 'billing'
    """
    path = normalize_path(file_path)
    best = None
    for marker in SERVICE_MARKERS:
        index = path.find(marker)
        if index != -1 and (best is None or index < best[0]):
            best = (index, marker)
    if best is None:
        return None

    index, marker = best
    remainder = path[index + len(marker):]
    segment = remainder.split('/', 1)[0]
    # A file directly under the marker directory has no domain segment
    if not segment or '/' not in remainder:
        return None
    return segment


def in_scope(file_path: str, category: Category, domain_filter: str) -> bool:
    """Decide whether a file takes part in a domain-scoped scan.

    Only service files can be scoped out, and only when the filter is a real
    domain (not the 'database' sentinel) that differs from the file's domain.
    Service files with no domain segment are shared and always kept.
    """
    if domain_filter == NO_DOMAIN_SCOPE:
        return True
    if category != Category.SERVICE:
        return True
    domain = domain_of(file_path)
    return domain is None or domain == domain_filter.lower()
