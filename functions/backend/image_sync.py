"""
Keeps the image catalogue in the database in step with the storage bucket.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from backend.db import DbClient, ImageRecord
from backend.storage import StorageClient, StorageRequestError
from shared.categories import CategoryRules, build_category_rules, determine_category
from shared.signing import InvalidConfiguration
from shared.types import SyncSource

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    source: SyncSource
    synced: int = 0
    errors: list[dict] = field(default_factory=list)

    def as_dict(self) -> dict:
        return {
            "synced": self.synced,
            "errors": self.errors,
            "source": self.source.value,
        }


class ImageNotFound(LookupError):
    pass


def load_category_rules(db: DbClient) -> CategoryRules:
    """Snapshot of the active categories, taken once per run."""
    return build_category_rules(
        (category.folder_path, category.id)
        for category in db.list_image_categories(active_only=True)
    )


def sync_images(
    db: DbClient,
    storage: StorageClient,
    source: SyncSource = SyncSource.BUCKET,
) -> SyncResult:
    """
    Inserts a catalogue entry for every listed image key not already known.

    Listing failures propagate; a failure on one key is recorded in
    ``errors`` and the run continues.
    """
    objects = storage.list_objects(source)
    rules = load_category_rules(db)
    result = SyncResult(source=source)

    for obj in objects:
        try:
            if db.get_image_by_key(obj.key):
                continue
            db.create_image(
                ImageRecord(
                    s3_key=obj.key,
                    original_name=obj.original_name,
                    category_id=determine_category(obj.key, rules),
                    file_size=obj.size,
                    is_processed=True,
                )
            )
            result.synced += 1
        except Exception as e:
            logger.exception("Error syncing %s from %s", obj.key, source.value)
            result.errors.append({"key": obj.key, "error": str(e)})

    logger.info(
        "Synced %d new images from %s (%d errors)",
        result.synced,
        source.value,
        len(result.errors),
    )
    return result


def organize_images(db: DbClient) -> int:
    """Assigns a category to every uncategorised image that matches a rule."""
    rules = load_category_rules(db)
    organized = 0
    for image in db.list_images(uncategorized=True):
        category_id = determine_category(image.s3_key, rules)
        if category_id and db.set_image_category(image.id, category_id):
            organized += 1
    return organized


def move_image(db: DbClient, image_key: str, category_id: str) -> None:
    image = db.get_image_by_key(image_key)
    if not image:
        raise ImageNotFound(image_key)
    db.set_image_category(image.id, category_id)


def check_connection(storage: StorageClient) -> dict:
    """Lists the bucket once; reports the outcome instead of raising."""
    try:
        storage.list_objects(SyncSource.BUCKET)
    except InvalidConfiguration as e:
        logger.warning("Storage connection test skipped: %s", e)
        return {"success": False, "message": "Storage is not configured"}
    except StorageRequestError as e:
        logger.warning("Storage connection test failed: %s", e)
        return {"success": False, "message": "Connection failed"}
    return {"success": True, "message": "Connection successful"}

