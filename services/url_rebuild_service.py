"""Bulk recomputation of full URLs for every entity of a urlable type."""

import logging
from dataclasses import dataclass

from sqlalchemy import ColumnElement
from sqlalchemy.ext.asyncio import AsyncSession

import config
from services import urlable_registry, url_sync_service
from services.exceptions import UnknownUrlableTypeError, UrlConflictError, UrlTooLongError

logger = logging.getLogger(__name__)


@dataclass
class RebuildReport:
    entity_type: str
    processed: int = 0
    changed: int = 0
    failed: int = 0


async def rebuild_all_urls(
    session: AsyncSession,
    entity_type: str,
    batch_size: int | None = None,
    where: ColumnElement[bool] | None = None,
) -> RebuildReport:
    """
    Run the url sync phase for every rebuildable entity of a type.

    Entities are read in id order, batch_size at a time (keyset pagination),
    and each is synced in its own transaction. Cascades are not triggered:
    every entity is visited anyway. Running it twice changes nothing the
    second time.

    Args:
        session: Database session
        entity_type: Registered urlable type
        batch_size: Entities per batch (default: settings.URL_REBUILD_BATCH_SIZE)
        where: Optional extra filter on the type's model

    Returns:
        RebuildReport with processed / changed / failed counts

    Raises:
        UnknownUrlableTypeError: If entity_type is not registered
    """
    urlable = urlable_registry.get(entity_type)
    if urlable is None:
        raise UnknownUrlableTypeError(entity_type)

    size = batch_size or config.settings.URL_REBUILD_BATCH_SIZE
    id_column = urlable.model.id
    report = RebuildReport(entity_type=entity_type)
    last_id = None

    while True:
        query = urlable.rebuild_query().with_only_columns(id_column)
        if where is not None:
            query = query.where(where)
        if last_id is not None:
            query = query.where(id_column > last_id)

        result = await session.execute(query.order_by(id_column).limit(size))
        ids = list(result.scalars().all())
        if not ids:
            break

        for entity_id in ids:
            entity = await urlable.load(session, entity_id)
            if entity is None:
                continue

            report.processed += 1
            try:
                outcome = await url_sync_service.sync_full_url(session, entity)
            except (UrlConflictError, UrlTooLongError) as e:
                report.failed += 1
                logger.warning("Rebuild could not update %s:%s: %s", entity_type, entity_id, e.detail)
                continue

            if outcome.version_created or outcome.collection_updated:
                report.changed += 1

        last_id = ids[-1]

    logger.info(
        "Rebuilt %s urls: %d processed, %d changed, %d failed",
        entity_type,
        report.processed,
        report.changed,
        report.failed,
    )
    return report
