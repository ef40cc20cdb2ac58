from __future__ import annotations

import logging

from azure.cosmos import PartitionKey, exceptions
from azure.cosmos.aio import CosmosClient

from staff_directory.core.config import Settings
from staff_directory.models.directory import SortKey

logger = logging.getLogger(__name__)

PARTITION_KEY_PATH = "/id"


def _composite_indexes() -> list[list[dict[str, str]]]:
    # ORDER BY sort_keys.<key>, id needs one composite index per direction.
    indexes = []
    for key in SortKey:
        for order in ("ascending", "descending"):
            indexes.append(
                [
                    {"path": f"/sort_keys/{key.value}", "order": order},
                    {"path": "/id", "order": order},
                ]
            )
    return indexes


INDEXING_POLICY: dict[str, object] = {
    "indexingMode": "consistent",
    "automatic": True,
    "includedPaths": [{"path": "/*"}],
    "excludedPaths": [{"path": "/profile/bio/?"}, {"path": '/"_etag"/?'}],
    "compositeIndexes": _composite_indexes(),
}


async def ensure_container(settings: Settings) -> bool:
    """Create the database and employee container with the directory indexing policy."""
    if not settings.COSMOS_DB_ENDPOINT or not settings.COSMOS_DB_KEY:
        logger.warning("Cosmos DB credentials missing; container not created")
        return False

    client = CosmosClient(settings.COSMOS_DB_ENDPOINT, settings.COSMOS_DB_KEY)
    try:
        db = await client.create_database_if_not_exists(id=settings.COSMOS_DB_DATABASE)
        await db.create_container_if_not_exists(
            id=settings.COSMOS_DB_EMPLOYEES_CONTAINER,
            partition_key=PartitionKey(path=PARTITION_KEY_PATH),
            indexing_policy=INDEXING_POLICY,
        )
        logger.info(
            "Container ready: %s/%s",
            settings.COSMOS_DB_DATABASE,
            settings.COSMOS_DB_EMPLOYEES_CONTAINER,
        )
        return True
    except exceptions.CosmosHttpResponseError:
        logger.exception("Container creation failed")
        return False
    finally:
        await client.close()
