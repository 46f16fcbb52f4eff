"""Slug / full URL synchronization engine.

Every save of a urlable entity goes through the same phases:

1. capture  - best-effort full URL before the change (diagnostics only)
2. slug     - normalize slug + collection, detect a change, check conflicts,
              upsert the single slug row (inside the entity's transaction)
3. url sync - after the entity's transaction commits: compute the full URL and
              version-and-swap the urls rows in a transaction of its own
4. cascade  - when the slug/collection or the full URL changed, recompute the
              full URL of every dependent, one transaction per dependent

A conflict aborts only the transaction it happens in. Cascade failures are
collected per dependent; they never unwind the ancestor's committed change.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

import config
from models.slug import Slug
from models.url import Url
from repos import slugs_repo, urls_repo
from services import events, urlable_registry
from services.exceptions import SlugConflictError, UrlConflictError, UrlTooLongError
from services.slug_normalizer import normalize_collection, normalize_pair
from services.unit_of_work import UnitOfWork
from services.urlable_registry import EntityRef, Urlable

logger = logging.getLogger(__name__)


class CascadeMode(str, enum.Enum):
    """Whether a save propagates full URL changes to dependents."""

    ENABLED = "enabled"
    DISABLED = "disabled"


@dataclass
class SlugChange:
    """Outcome of the slug phase."""

    slug: str | None = None
    collection: str | None = None
    changed: bool = False
    record: Slug | None = None


@dataclass
class UrlSyncResult:
    """Outcome of one full URL sync."""

    ref: EntityRef
    url: Url | None = None
    old_url: str | None = None
    new_url: str | None = None
    version_created: bool = False
    collection_updated: bool = False

    @property
    def url_changed(self) -> bool:
        """True when an existing active URL was replaced by a new version."""
        return self.version_created and self.old_url is not None


@dataclass
class CascadeReport:
    """Per-dependent outcome of a cascade."""

    synced: list[UrlSyncResult] = field(default_factory=list)
    failed: list[tuple[EntityRef, Exception]] = field(default_factory=list)
    skipped: int = 0

    @property
    def ok(self) -> bool:
        return not self.failed


@dataclass
class SaveOutcome:
    """Everything a save did to the entity's slug and urls."""

    entity: Any
    previous_url: str | None = None
    slug_change: SlugChange = field(default_factory=SlugChange)
    url_result: UrlSyncResult | None = None
    cascade: CascadeReport = field(default_factory=CascadeReport)


def resolve_collection(urlable: Urlable, entity: Any, collection: str | None) -> str | None:
    """Explicit collection, else the type's default hook (entity type attribute by default)."""
    if collection is not None and collection != "":
        return collection
    return normalize_collection(urlable.default_collection(entity))


async def capture_previous_url(session: AsyncSession, entity: Any) -> str | None:
    """
    Best-effort full URL of an entity before it changes.

    Never raises: a missing id, an unregistered type or a failing builder all
    yield None.
    """
    urlable = urlable_registry.for_entity(entity)
    if urlable is None or getattr(entity, "id", None) is None:
        return None

    try:
        return await urlable.build_full_url(session, entity)
    except Exception:
        logger.debug("Could not capture previous url of %s", entity, exc_info=True)
        return None


async def apply_slug(
    session: AsyncSession,
    entity: Any,
    *,
    slug: str | None,
    collection: str | None,
) -> SlugChange:
    """
    Slug phase: normalize, detect change, check conflicts, upsert.

    Runs inside the entity's own write transaction (no commit here).

    Args:
        session: Database session
        entity: Persisted (flushed) urlable entity
        slug: Raw slug input, or None if not supplied
        collection: Raw collection input, or None if not supplied

    Returns:
        SlugChange describing the stored slug and whether it changed

    Raises:
        SlugConflictError: If another active entity of the same type owns
            (slug, collection)
    """
    if slug is None and collection is None:
        return SlugChange()

    urlable = urlable_registry.require_for_entity(entity)
    ref = urlable.ref(entity)

    normalized_slug, normalized_collection = normalize_pair(slug, collection)
    resolved_collection = resolve_collection(urlable, entity, normalized_collection)

    current = await slugs_repo.get_for_entity(
        session,
        entity_type=ref.entity_type,
        entity_id=ref.entity_id,
    )
    effective_slug = normalized_slug if normalized_slug is not None else (current.slug if current else None)

    if effective_slug is None:
        # Empty slug and nothing stored yet: no slug supplied
        return SlugChange(collection=resolved_collection)

    changed = (
        current is None
        or current.slug != effective_slug
        or current.collection != resolved_collection
    )
    if not changed:
        return SlugChange(slug=current.slug, collection=current.collection, record=current)

    if await slugs_repo.has_active_conflict(
        session,
        entity_type=ref.entity_type,
        slug=effective_slug,
        collection=resolved_collection,
        exclude_entity_id=ref.entity_id,
    ):
        raise SlugConflictError(effective_slug, resolved_collection)

    try:
        record = await slugs_repo.upsert(
            session,
            entity_type=ref.entity_type,
            entity_id=ref.entity_id,
            slug=effective_slug,
            collection=resolved_collection,
        )
    except IntegrityError as e:
        # A concurrent writer claimed the slug between our check and the flush
        await session.rollback()
        raise SlugConflictError(effective_slug, resolved_collection) from e

    return SlugChange(slug=effective_slug, collection=resolved_collection, changed=True, record=record)


async def _url_collection(session: AsyncSession, urlable: Urlable, entity: Any, ref: EntityRef) -> str | None:
    # The url row mirrors the slug row's collection
    record = await slugs_repo.get_for_entity(session, entity_type=ref.entity_type, entity_id=ref.entity_id)
    if record is not None:
        return record.collection
    return resolve_collection(urlable, entity, None)


async def sync_full_url(session: AsyncSession, entity: Any) -> UrlSyncResult:
    """
    Url sync phase: version-and-swap the entity's active full URL.

    - no active url: conflict check, purge retired duplicates, insert the next
      version (1 for a new entity), emit UrlChanged(old=None)
    - same full URL: only correct the collection in place if it differs
    - different full URL: conflict check, purge retired duplicates, retire the
      active row, insert version + 1, emit UrlChanged

    Writes are committed here; on failure the transaction is rolled back and
    nothing is written.

    Raises:
        UrlConflictError: If another active entity owns the computed full URL
        UrlTooLongError: If the computed full URL exceeds URL_MAX_LENGTH
    """
    urlable = urlable_registry.require_for_entity(entity)
    ref = urlable.ref(entity)

    new_url = await urlable.build_full_url(session, entity)
    result = UrlSyncResult(ref=ref, new_url=new_url or None)

    if not new_url:
        logger.debug("No full url for %s (no slug yet); skipping sync", ref)
        return result

    if len(new_url) > config.settings.URL_MAX_LENGTH:
        raise UrlTooLongError(len(new_url), config.settings.URL_MAX_LENGTH)

    collection = await _url_collection(session, urlable, entity, ref)
    active = await urls_repo.get_active(session, entity_type=ref.entity_type, entity_id=ref.entity_id)

    if active is not None and active.full_url == new_url:
        result.url = active
        result.old_url = active.full_url
        if active.collection != collection:
            await urls_repo.update_collection(session, active, collection=collection)
            await session.commit()
            result.collection_updated = True
            logger.debug("Updated collection of %s url v%d to %r", ref, active.version, collection)
        return result

    old_url = active.full_url if active is not None else None

    try:
        owner = await urls_repo.find_active_by_path(
            session,
            full_url=new_url,
            exclude_entity=(ref.entity_type, ref.entity_id),
        )
        if owner is not None:
            raise UrlConflictError(new_url)

        await urls_repo.purge_retired_duplicates(session, full_url=new_url)

        if active is not None:
            version = active.version + 1
            await urls_repo.retire_active(session, entity_type=ref.entity_type, entity_id=ref.entity_id)
        else:
            version = await urls_repo.get_latest_version(
                session,
                entity_type=ref.entity_type,
                entity_id=ref.entity_id,
            ) + 1

        url = await urls_repo.create_version(
            session,
            entity_type=ref.entity_type,
            entity_id=ref.entity_id,
            full_url=new_url,
            collection=collection,
            version=version,
        )
        await session.commit()
    except UrlConflictError:
        await session.rollback()
        raise
    except IntegrityError as e:
        # A concurrent writer claimed the path between our check and insert
        await session.rollback()
        raise UrlConflictError(new_url) from e

    result.url = url
    result.old_url = old_url
    result.version_created = True

    logger.info("Url of %s is now %r (v%d, was %r)", ref, new_url, version, old_url)
    await events.dispatch(
        events.UrlChanged(
            entity=entity,
            entity_type=ref.entity_type,
            old=old_url,
            new=new_url,
            version=version,
        )
    )
    return result


def dependent_refs(dependents: list[Any]) -> list[EntityRef]:
    """References of the registered entries; unregistered types are dropped."""
    refs = []
    for dependent in dependents:
        dependent_urlable = urlable_registry.for_entity(dependent)
        if dependent_urlable is not None:
            refs.append(dependent_urlable.ref(dependent))
    return refs


async def sync_refs(
    session: AsyncSession,
    refs: list[EntityRef],
    *,
    origin: EntityRef | None = None,
) -> CascadeReport:
    """Reload and sync each referenced entity in turn, one transaction each."""
    report = CascadeReport()

    for ref in refs:
        dependent = await urlable_registry.load(session, ref)
        if dependent is None:
            report.skipped += 1
            continue

        try:
            report.synced.append(await sync_full_url(session, dependent))
        except (UrlConflictError, UrlTooLongError) as e:
            logger.warning("Cascade from %s could not update %s: %s", origin, ref, e.detail)
            report.failed.append((ref, e))

    return report


async def cascade(session: AsyncSession, entity: Any) -> CascadeReport:
    """
    Recompute the full URL of every dependent of an entity.

    Dependents are synced sequentially, each in its own transaction. Entries of
    unregistered types are skipped. Conflicts are logged and reported per
    dependent; they do not stop the cascade.
    """
    urlable = urlable_registry.require_for_entity(entity)
    origin = urlable.ref(entity)

    if not urlable.supports_cascade:
        return CascadeReport()

    # Capture refs up front: a dependent's rollback expires every loaded instance
    dependents = await urlable.list_dependents(session, entity)
    refs = dependent_refs(dependents)
    report = await sync_refs(session, refs, origin=origin)
    report.skipped += len(dependents) - len(refs)

    if report.failed:
        await session.refresh(entity)

    return report


async def sync_entity(
    session: AsyncSession,
    entity: Any,
    *,
    slug_changed: bool = False,
    cascade_mode: CascadeMode = CascadeMode.ENABLED,
) -> tuple[UrlSyncResult, CascadeReport]:
    """
    Url sync phase followed by the cascade phase when something changed.

    Returns:
        (url sync result, cascade report)
    """
    result = await sync_full_url(session, entity)

    if cascade_mode is CascadeMode.ENABLED and (slug_changed or result.url_changed):
        return result, await cascade(session, entity)

    return result, CascadeReport()


async def save_with_url(
    session: AsyncSession,
    entity: Any,
    *,
    slug: str | None = None,
    collection: str | None = None,
    cascade_mode: CascadeMode = CascadeMode.ENABLED,
    previous_url: str | None = None,
) -> SaveOutcome:
    """
    Persist pending entity changes together with its slug, then sync urls.

    The entity write and slug upsert commit together; the url sync and cascade
    run after that commit.

    Args:
        session: Database session holding the pending entity changes
        entity: Urlable entity (new or modified, not yet committed)
        slug: Raw slug input, or None if not supplied
        collection: Raw collection input, or None if not supplied
        cascade_mode: CascadeMode.DISABLED leaves dependents untouched
        previous_url: Full URL captured before the entity was modified

    Returns:
        SaveOutcome

    Raises:
        SlugConflictError: Nothing was written
        UrlConflictError: The entity and its slug were saved; its url was not
    """
    outcome = SaveOutcome(entity=entity, previous_url=previous_url)

    async with UnitOfWork(session) as uow:
        await session.flush()
        outcome.slug_change = await apply_slug(session, entity, slug=slug, collection=collection)

        async def _after_commit():
            return await sync_entity(
                session,
                entity,
                slug_changed=outcome.slug_change.changed,
                cascade_mode=cascade_mode,
            )

        uow.after_commit(_after_commit)
        [(outcome.url_result, outcome.cascade)] = await uow.commit()

    if previous_url is not None and outcome.url_result.url_changed:
        logger.debug("Url of %s moved from %r", outcome.url_result.ref, previous_url)

    return outcome


async def url_fields(session: AsyncSession, entity: Any) -> dict[str, Any]:
    """Current slug, collection, full URL and url version of an entity, for responses."""
    ref = urlable_registry.require_for_entity(entity).ref(entity)
    record = await slugs_repo.get_for_entity(session, entity_type=ref.entity_type, entity_id=ref.entity_id)
    url = await urls_repo.get_active(session, entity_type=ref.entity_type, entity_id=ref.entity_id)

    return {
        "slug": record.slug if record is not None else None,
        "collection": record.collection if record is not None else None,
        "full_url": url.full_url if url is not None else None,
        "url_version": url.version if url is not None else None,
    }
