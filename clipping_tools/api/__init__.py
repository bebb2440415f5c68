"""
Clients for upstream image sources.
"""

from .loc_client import (
    DisallowedURLError,
    ImageFetchError,
    LocImageClient,
    is_allowed_url,
    upgrade_loc_image_url,
)

__all__ = ['DisallowedURLError', 'ImageFetchError', 'LocImageClient',
           'is_allowed_url', 'upgrade_loc_image_url']
