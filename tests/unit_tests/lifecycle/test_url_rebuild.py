"""Unit tests for bulk url rebuild."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from models.category import Category, CategoryUpdate
from repos import urls_repo
from services import categories_service
from services.catalog_urlables import CATEGORY_TYPE, PRODUCT_TYPE
from services.exceptions import UnknownUrlableTypeError
from services.url_rebuild_service import rebuild_all_urls
from services.url_sync_service import CascadeMode


@pytest.mark.asyncio
async def test_rebuild_repairs_suppressed_cascade(db_session: AsyncSession, make_category, make_product):
    """Test: After a save without cascade, a rebuild brings dependents up to date."""
    a = await make_category("A", slug="a")
    children = [await make_category(f"C{i}", slug=f"c{i}", parent=a) for i in range(5)]
    product = await make_product("P", slug="p", category=children[0])
    a_id, child_ids, product_id = a.id, [c.id for c in children], product.id

    await categories_service.update_category(
        db_session,
        category_id=a_id,
        payload=CategoryUpdate(slug="x"),
        cascade_mode=CascadeMode.DISABLED,
    )

    report = await rebuild_all_urls(db_session, CATEGORY_TYPE, batch_size=2)

    assert report.processed == 6
    assert report.changed == 5
    assert report.failed == 0
    for i, child_id in enumerate(child_ids):
        url = await urls_repo.get_active(db_session, entity_type=CATEGORY_TYPE, entity_id=child_id)
        assert (url.full_url, url.version) == (f"x/c{i}", 2)

    product_report = await rebuild_all_urls(db_session, PRODUCT_TYPE)
    assert product_report.changed == 1
    url = await urls_repo.get_active(db_session, entity_type=PRODUCT_TYPE, entity_id=product_id)
    assert url.full_url == "x/c0/p"


@pytest.mark.asyncio
async def test_rebuild_is_idempotent(db_session: AsyncSession, make_category):
    a = await make_category("A", slug="a")
    await make_category("B", slug="b", parent=a)

    first = await rebuild_all_urls(db_session, CATEGORY_TYPE)
    second = await rebuild_all_urls(db_session, CATEGORY_TYPE)

    assert (first.processed, first.changed) == (2, 0)
    assert (second.processed, second.changed) == (2, 0)


@pytest.mark.asyncio
async def test_rebuild_where_filter(db_session: AsyncSession, make_category):
    await make_category("A", slug="a")
    await make_category("B", slug="b", type="landing")

    report = await rebuild_all_urls(db_session, CATEGORY_TYPE, where=Category.type == "landing")

    assert report.processed == 1


@pytest.mark.asyncio
async def test_rebuild_unknown_type(db_session: AsyncSession):
    with pytest.raises(UnknownUrlableTypeError) as exc_info:
        await rebuild_all_urls(db_session, "page")

    assert exc_info.value.status_code == 404
