"""
Static upstream path allowlists.
"""

from typing import Iterable, Optional, Tuple
from urllib.parse import unquote

TRAKT_ALLOWED_PATHS: Tuple[str, ...] = (
    "/oauth/device/code",
    "/oauth/device/token",
    "/oauth/token",
    "/users/me",
    "/users/",
    "/sync/history",
    "/sync/watchlist",
    "/sync/watched",
    "/sync/playback",
    "/movies/",
    "/shows/",
    "/search/",
    "/calendars/",
)

TMDB_ALLOWED_PATHS: Tuple[str, ...] = (
    "/trending/",
    "/movie/",
    "/tv/",
    "/search/",
    "/discover/",
    "/genre/",
    "/person/",
    "/watch/providers",
    "/configuration",
)

# Characters that would change how the upstream URL is parsed.
UNSAFE_PATH_CHARACTERS = ("?", "#", "\\")
DOT_SEGMENTS = (".", "..")


def is_safe_path(path: str) -> bool:
    """True when ``path`` is absolute and cannot be resolved outside its own prefix.

    The upstream URL is built by appending ``path`` to a base URL, and httpx
    resolves dot segments, so a prefix match on the raw string is not enough.
    Percent-encoded forms are checked after decoding.
    """
    if not path.startswith("/"):
        return False
    for candidate in (path, unquote(path)):
        if any(char in candidate for char in UNSAFE_PATH_CHARACTERS):
            return False
        if any(segment in DOT_SEGMENTS for segment in candidate.split("/")):
            return False
    return True


class PathAllowlist:
    """Ordered prefix matcher over a fixed table of upstream route families."""

    def __init__(self, prefixes: Iterable[str]):
        self.prefixes: Tuple[str, ...] = tuple(prefixes)

    def match(self, path: str) -> Optional[str]:
        """Return the first prefix ``path`` starts with, if any."""
        for prefix in self.prefixes:
            if path.startswith(prefix):
                return prefix
        return None

    def is_allowed(self, path: str) -> bool:
        if not is_safe_path(path):
            return False
        return self.match(path) is not None
