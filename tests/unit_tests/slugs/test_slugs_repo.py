"""Unit tests for slugs repository layer.

These tests verify database operations in isolation.
"""

from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from models.record_status import RecordStatus
from models.slug import Slug
from repos import slugs_repo


@pytest.mark.asyncio
async def test_repo_upsert_creates_then_replaces(db_session: AsyncSession):
    """Test: upsert keeps a single row per entity."""
    entity_id = uuid4()

    created = await slugs_repo.upsert(
        db_session, entity_type="page", entity_id=entity_id, slug="about", collection=None
    )
    await db_session.commit()
    assert created.slug == "about"
    assert created.status == RecordStatus.ACTIVE.value

    replaced = await slugs_repo.upsert(
        db_session, entity_type="page", entity_id=entity_id, slug="about-us", collection="site"
    )
    await db_session.commit()

    assert replaced.id == created.id
    assert replaced.slug == "about-us"
    assert replaced.collection == "site"


@pytest.mark.asyncio
async def test_repo_upsert_noop_without_values(db_session: AsyncSession):
    """Test: Nothing is written when slug and collection are both unset."""
    entity_id = uuid4()

    assert await slugs_repo.upsert(
        db_session, entity_type="page", entity_id=entity_id, slug=None, collection=None
    ) is None
    assert await slugs_repo.upsert(
        db_session, entity_type="page", entity_id=entity_id, slug=None, collection="site"
    ) is None
    assert await slugs_repo.get_for_entity(db_session, entity_type="page", entity_id=entity_id) is None


@pytest.mark.asyncio
async def test_repo_upsert_collection_only_keeps_slug(db_session: AsyncSession):
    entity_id = uuid4()
    await slugs_repo.upsert(db_session, entity_type="page", entity_id=entity_id, slug="faq", collection=None)

    record = await slugs_repo.upsert(
        db_session, entity_type="page", entity_id=entity_id, slug=None, collection="help"
    )

    assert record.slug == "faq"
    assert record.collection == "help"


@pytest.mark.asyncio
async def test_repo_find_active_null_collection_is_its_own_scope(db_session: AsyncSession):
    """Test: collection=None only matches rows without a collection."""
    in_blog, no_collection = uuid4(), uuid4()
    await slugs_repo.upsert(db_session, entity_type="post", entity_id=in_blog, slug="hello", collection="blog")
    await slugs_repo.upsert(db_session, entity_type="post", entity_id=no_collection, slug="hello", collection=None)
    await db_session.commit()

    found_blog = await slugs_repo.find_active(db_session, entity_type="post", slug="hello", collection="blog")
    found_none = await slugs_repo.find_active(db_session, entity_type="post", slug="hello", collection=None)
    missing = await slugs_repo.find_active(db_session, entity_type="post", slug="hello", collection="news")

    assert found_blog.slugable_id == in_blog
    assert found_none.slugable_id == no_collection
    assert missing is None


@pytest.mark.asyncio
async def test_repo_has_active_conflict_excludes_self(db_session: AsyncSession):
    owner = uuid4()
    await slugs_repo.upsert(db_session, entity_type="post", entity_id=owner, slug="hello", collection=None)
    await db_session.commit()

    assert await slugs_repo.has_active_conflict(
        db_session, entity_type="post", slug="hello", collection=None, exclude_entity_id=uuid4()
    )
    assert not await slugs_repo.has_active_conflict(
        db_session, entity_type="post", slug="hello", collection=None, exclude_entity_id=owner
    )
    # Same slug for another type is not a conflict
    assert not await slugs_repo.has_active_conflict(
        db_session, entity_type="page", slug="hello", collection=None
    )


@pytest.mark.asyncio
async def test_repo_soft_delete_and_restore(db_session: AsyncSession):
    """Test: A retired slug is invisible to lookups until restored."""
    entity_id = uuid4()
    await slugs_repo.upsert(db_session, entity_type="post", entity_id=entity_id, slug="hello", collection=None)
    await db_session.commit()

    retired = await slugs_repo.soft_delete(db_session, entity_type="post", entity_id=entity_id)
    await db_session.commit()

    assert retired == 1
    assert await slugs_repo.get_for_entity(db_session, entity_type="post", entity_id=entity_id) is None
    assert await slugs_repo.find_active(db_session, entity_type="post", slug="hello") is None

    kept = await slugs_repo.get_for_entity(
        db_session, entity_type="post", entity_id=entity_id, include_retired=True
    )
    assert kept.status == RecordStatus.RETIRED.value
    assert kept.deleted_at is not None

    restored = await slugs_repo.restore(db_session, entity_type="post", entity_id=entity_id)
    await db_session.commit()

    assert restored.is_active
    assert restored.deleted_at is None


@pytest.mark.asyncio
async def test_repo_purge_removes_all_rows(db_session: AsyncSession):
    entity_id = uuid4()
    await slugs_repo.upsert(db_session, entity_type="post", entity_id=entity_id, slug="hello", collection=None)
    await slugs_repo.soft_delete(db_session, entity_type="post", entity_id=entity_id)
    await db_session.commit()

    deleted = await slugs_repo.purge(db_session, entity_type="post", entity_id=entity_id)
    await db_session.commit()

    assert deleted == 1
    assert await slugs_repo.get_for_entity(
        db_session, entity_type="post", entity_id=entity_id, include_retired=True
    ) is None


@pytest.mark.asyncio
async def test_repo_delete_for_entity_respects_collection(db_session: AsyncSession):
    entity_id = uuid4()
    await slugs_repo.upsert(db_session, entity_type="post", entity_id=entity_id, slug="hello", collection="blog")
    await db_session.commit()

    assert await slugs_repo.delete_for_entity(
        db_session, entity_type="post", entity_id=entity_id, collection="news"
    ) == 0
    assert await slugs_repo.delete_for_entity(
        db_session, entity_type="post", entity_id=entity_id, collection="blog"
    ) == 1


@pytest.mark.asyncio
async def test_db_rejects_two_active_owners_of_a_slug(db_session: AsyncSession):
    """Test: The partial unique index guards (type, slug, collection) among active rows."""
    db_session.add(Slug(slugable_type="post", slugable_id=uuid4(), slug="dup", collection=None))
    await db_session.commit()

    db_session.add(Slug(slugable_type="post", slugable_id=uuid4(), slug="dup", collection=None))
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()


@pytest.mark.asyncio
async def test_db_allows_retired_duplicate_slug(db_session: AsyncSession):
    db_session.add(
        Slug(
            slugable_type="post",
            slugable_id=uuid4(),
            slug="dup",
            status=RecordStatus.RETIRED.value,
        )
    )
    db_session.add(Slug(slugable_type="post", slugable_id=uuid4(), slug="dup"))
    await db_session.commit()

    assert await slugs_repo.find_active(db_session, entity_type="post", slug="dup") is not None
