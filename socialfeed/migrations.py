"""
One-off data migrations run at startup.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from socialfeed.config import Settings
from socialfeed.db import DbClient
from socialfeed.uploads import image_proxy_url

logger = logging.getLogger(__name__)


def legacy_image_url_pattern(bucket: str) -> re.Pattern:
    """Matches direct object-store URLs such as ``http://minio:9000/<bucket>/<file>``."""
    return re.compile(
        rf"^https?://[^/]+/{re.escape(bucket)}/(?P<file_name>[^/?#]+)$"
    )


def rewrite_legacy_image_url(
    url: str, pattern: re.Pattern, api_prefix: str
) -> Optional[str]:
    match = pattern.match(url or "")
    if not match:
        return None
    return image_proxy_url(api_prefix, match.group("file_name"))


def migrate_legacy_image_urls(
    db: DbClient, settings: Settings, *, dry_run: bool = False
) -> int:
    """
    Point post images that reference the object store directly at the API
    image proxy. Returns the number of posts rewritten; once no legacy URLs
    remain, re-running it changes nothing.
    """
    if not settings.s3_bucket:
        logger.info("No storage bucket configured; skipping image URL migration")
        return 0

    pattern = legacy_image_url_pattern(settings.s3_bucket)
    migrated = 0
    for post in db.list_posts_with_images():
        new_url = rewrite_legacy_image_url(post.image, pattern, settings.api_prefix)
        if not new_url:
            continue
        migrated += 1
        if not dry_run:
            db.set_post_image(post.id, new_url)

    if migrated:
        logger.info("Migrated %d legacy image URLs", migrated)
    return migrated
