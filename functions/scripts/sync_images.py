"""
CLI helper to sync bucket images into the image catalogue without the API.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from backend.config import StorageConfig, get_settings
from backend.db import PostgresDbClient
from backend.image_sync import organize_images, sync_images
from backend.storage import S3ListingClient, StorageRequestError
from shared.signing import InvalidConfiguration
from shared.types import SyncSource

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Sync storage images into the catalogue"
    )
    parser.add_argument(
        "--source",
        choices=[source.value for source in SyncSource],
        default=SyncSource.BUCKET.value,
        help="List the bucket or the access point alias",
    )
    parser.add_argument(
        "--organize",
        action="store_true",
        help="Also assign categories to uncategorised images",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Only list image keys, do not write to the database",
    )
    args = parser.parse_args(argv)
    if args.dry_run and args.organize:
        parser.error("--organize writes to the database; drop it or --dry-run")

    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(), format="%(levelname)s:%(message)s"
    )

    try:
        storage = S3ListingClient(StorageConfig.from_settings(settings))
        source = SyncSource(args.source)
        if args.dry_run:
            for obj in storage.list_objects(source):
                print(obj.key)
            return 0

        if not settings.database_url:
            logger.error("DATABASE_URL is required unless --dry-run is given")
            return 2
        db = PostgresDbClient(settings.database_url)
        result = sync_images(db, storage, source)
    except InvalidConfiguration as e:
        logger.error("%s", e)
        return 2
    except StorageRequestError as e:
        logger.error("Sync failed: %s", e)
        return 1

    logger.info("Synced %d images, %d errors", result.synced, len(result.errors))
    if args.organize:
        logger.info("Organized %d images", organize_images(db))
    return 0 if not result.errors else 1


if __name__ == "__main__":
    sys.exit(main())
