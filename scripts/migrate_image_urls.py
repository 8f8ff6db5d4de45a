"""
Rewrite post images that still point at the object store directly so they
use the API image proxy instead.

The service runs the same migration on startup; this script exists for
running it by hand (for example with --dry-run before a deploy).
"""

from __future__ import annotations

import argparse
import logging
import sys

from socialfeed.config import get_settings
from socialfeed.dependencies import build_db_client
from socialfeed.migrations import migrate_legacy_image_urls

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Migrate legacy image URLs")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Report how many posts would be updated without saving",
    )
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(levelname)s:%(message)s")
    settings = get_settings()
    if not settings.database_url:
        logger.error("DATABASE_URL is not set; nothing to migrate")
        return 1

    db = build_db_client(settings)
    migrated = migrate_legacy_image_urls(db, settings, dry_run=args.dry_run)
    verb = "Would update" if args.dry_run else "Updated"
    logger.info("%s %d posts", verb, migrated)
    return 0


if __name__ == "__main__":
    sys.exit(main())
