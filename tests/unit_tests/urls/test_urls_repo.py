"""Unit tests for urls repository layer."""

from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.record_status import RecordStatus
from repos import urls_repo


async def _swap(session, entity_type, entity_id, full_url):
    """Retire the active version and insert the next one, like the engine does."""
    active = await urls_repo.get_active(session, entity_type=entity_type, entity_id=entity_id)
    version = active.version + 1 if active else 1
    await urls_repo.retire_active(session, entity_type=entity_type, entity_id=entity_id)
    url = await urls_repo.create_version(
        session,
        entity_type=entity_type,
        entity_id=entity_id,
        full_url=full_url,
        collection=None,
        version=version,
    )
    await session.commit()
    return url


@pytest.mark.asyncio
async def test_repo_history_is_ordered_by_version(db_session: AsyncSession):
    entity_id = uuid4()
    for path in ("one", "two", "three"):
        await _swap(db_session, "page", entity_id, path)

    history = await urls_repo.get_history(db_session, entity_type="page", entity_id=entity_id)
    active_only = await urls_repo.get_history(
        db_session, entity_type="page", entity_id=entity_id, include_retired=False
    )

    assert [u.version for u in history] == [1, 2, 3]
    assert [u.status for u in history] == ["retired", "retired", "active"]
    assert [u.full_url for u in active_only] == ["three"]
    assert await urls_repo.get_latest_version(db_session, entity_type="page", entity_id=entity_id) == 3


@pytest.mark.asyncio
async def test_repo_latest_version_is_zero_without_rows(db_session: AsyncSession):
    assert await urls_repo.get_latest_version(db_session, entity_type="page", entity_id=uuid4()) == 0


@pytest.mark.asyncio
async def test_repo_retire_active_leaves_history_alone(db_session: AsyncSession):
    entity_id = uuid4()
    await _swap(db_session, "page", entity_id, "one")
    await _swap(db_session, "page", entity_id, "two")

    retired = await urls_repo.retire_active(db_session, entity_type="page", entity_id=entity_id)
    await db_session.commit()

    assert retired == 1
    assert await urls_repo.get_active(db_session, entity_type="page", entity_id=entity_id) is None
    assert len(await urls_repo.get_history(db_session, entity_type="page", entity_id=entity_id)) == 2


@pytest.mark.asyncio
async def test_repo_find_active_by_path_candidates_and_exclusion(db_session: AsyncSession):
    owner = uuid4()
    await _swap(db_session, "page", owner, "docs/intro")

    found = await urls_repo.find_active_by_path(db_session, full_url=["/docs/intro", "docs/intro"])
    excluded = await urls_repo.find_active_by_path(
        db_session, full_url="docs/intro", exclude_entity=("page", owner)
    )
    other_type = await urls_repo.find_active_by_path(
        db_session, full_url="docs/intro", exclude_entity=("post", owner)
    )

    assert found.urlable_id == owner
    assert excluded is None
    assert other_type is not None


@pytest.mark.asyncio
async def test_repo_most_recent_retired_by_path(db_session: AsyncSession):
    """Test: The most recently written retired row wins."""
    first, second = uuid4(), uuid4()
    await _swap(db_session, "page", first, "shared")
    await _swap(db_session, "page", first, "first-now")
    await _swap(db_session, "page", second, "shared")
    await _swap(db_session, "page", second, "second-now")

    retired = await urls_repo.find_most_recent_retired_by_path(db_session, full_url="shared")

    assert retired.urlable_id == second
    assert retired.status == RecordStatus.RETIRED.value


@pytest.mark.asyncio
async def test_repo_purge_retired_duplicates_spares_active(db_session: AsyncSession):
    first, second = uuid4(), uuid4()
    await _swap(db_session, "page", first, "shared")
    await _swap(db_session, "page", first, "elsewhere")
    await _swap(db_session, "post", second, "shared")

    purged = await urls_repo.purge_retired_duplicates(db_session, full_url="shared")
    await db_session.commit()

    assert purged == 1
    remaining = await urls_repo.get_history(db_session, entity_type="page", entity_id=first)
    assert [u.full_url for u in remaining] == ["elsewhere"]
    assert await urls_repo.find_active_by_path(db_session, full_url="shared") is not None


@pytest.mark.asyncio
async def test_repo_update_collection_in_place(db_session: AsyncSession):
    entity_id = uuid4()
    url = await _swap(db_session, "page", entity_id, "one")

    await urls_repo.update_collection(db_session, url, collection="docs")
    await db_session.commit()

    active = await urls_repo.get_active(db_session, entity_type="page", entity_id=entity_id)
    assert active.collection == "docs"
    assert active.version == 1


@pytest.mark.asyncio
async def test_repo_purge_all(db_session: AsyncSession):
    entity_id = uuid4()
    await _swap(db_session, "page", entity_id, "one")
    await _swap(db_session, "page", entity_id, "two")

    assert await urls_repo.purge_all(db_session, entity_type="page", entity_id=entity_id) == 2
    await db_session.commit()
    assert await urls_repo.get_history(db_session, entity_type="page", entity_id=entity_id) == []


@pytest.mark.asyncio
async def test_db_rejects_two_active_owners_of_a_path(db_session: AsyncSession):
    """Test: Active full URLs are unique across entity types."""
    await _swap(db_session, "page", uuid4(), "taken")

    with pytest.raises(IntegrityError):
        await urls_repo.create_version(
            db_session,
            entity_type="post",
            entity_id=uuid4(),
            full_url="taken",
            collection=None,
            version=1,
        )
    await db_session.rollback()
