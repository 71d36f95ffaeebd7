"""URL helpers shared by grouping and classification."""

from urllib.parse import urlsplit

UNKNOWN_DOMAIN = "unknown"


def extract_domain(url: str) -> str:
    """Return the hostname of *url*, or ``"unknown"`` if it cannot be parsed.

    The URL must be absolute (``scheme://host/...``); bare strings such as
    ``"github.com"`` or ``"not a url"`` have no hostname and map to
    ``"unknown"``.
    """
    try:
        hostname = urlsplit(url).hostname
    except (ValueError, TypeError, AttributeError):
        return UNKNOWN_DOMAIN
    return hostname or UNKNOWN_DOMAIN
