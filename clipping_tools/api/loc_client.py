"""
Library of Congress image fetching.

Only loc.gov hosts are accepted. IIIF image URLs can be upgraded to a larger
rendition before fetching.
"""
import logging
import re
from typing import Optional
from urllib.parse import urlparse

import requests

LOC_HOST_PATTERN = re.compile(r'(^|\.)loc\.gov$')
# IIIF path structure: .../{prefix}/full/{size}/{rotation}/default.{ext}
IIIF_SIZE_PATTERN = re.compile(r'/full/[^/]+/(\d+/default\.)')


class DisallowedURLError(ValueError):
    """Raised for URLs outside the loc.gov allow-list."""


class ImageFetchError(RuntimeError):
    """Raised when the upstream image cannot be fetched."""


def is_allowed_url(url: str) -> bool:
    """Check that the URL parses and points at loc.gov or a subdomain."""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return False
    if not hostname:
        return False
    return bool(LOC_HOST_PATTERN.search(hostname))


def upgrade_loc_image_url(url: str, width: int = 800) -> str:
    """Replace the IIIF size segment with ``{width},`` (aspect preserved).

    Examples of size segments: ``pct:6.25`` (~250px for a typical scan),
    ``800,``, ``full``. Non-IIIF URLs are returned unchanged.
    """
    return IIIF_SIZE_PATTERN.sub(f'/full/{width},/\\1', url, count=1)


class LocImageClient:
    """Fetches raw image bytes from loc.gov."""

    def __init__(self, timeout: float = 30, user_agent: Optional[str] = None,
                 session: Optional[requests.Session] = None):
        """
        Initialize client.

        Args:
            timeout: Request timeout in seconds
            user_agent: Optional User-Agent header
            session: Existing session to reuse
        """
        self.timeout = timeout
        self.session = session or requests.Session()
        self.logger = logging.getLogger(__name__)

        if user_agent:
            self.session.headers.update({'User-Agent': user_agent})

    def fetch_image(self, url: str, width: Optional[int] = None) -> bytes:
        """
        Fetch image bytes.

        Args:
            url: loc.gov image URL
            width: If given, request this IIIF width instead of the URL's size

        Returns:
            Raw encoded image bytes

        Raises:
            DisallowedURLError: If the URL is not on loc.gov
            ImageFetchError: If the request fails or returns an error status
        """
        if not is_allowed_url(url):
            raise DisallowedURLError(f"Only loc.gov URLs are accepted: {url}")

        if width:
            url = upgrade_loc_image_url(url, width)

        self.logger.debug(f"Fetching {url}")
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            raise ImageFetchError(f"Failed to fetch image: {e}") from e

        if not response.ok:
            raise ImageFetchError(f"Upstream fetch failed: {response.status_code}")

        return response.content
