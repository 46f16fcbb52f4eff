"""Urlable bindings for the catalog: nested categories and their products.

Full URLs are the slugs of the category chain, root first, followed by the
entity's own slug: category "a" > "b" > product "p1" is "a/b/p1".
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from models.category import Category
from models.product import Product
from repos import categories_repo, products_repo, slugs_repo
from services import urlable_registry
from services.urlable_registry import Urlable

CATEGORY_TYPE = "category"
PRODUCT_TYPE = "product"


async def _slug(session: AsyncSession, entity_type: str, entity: Any) -> str | None:
    record = await slugs_repo.get_for_entity(session, entity_type=entity_type, entity_id=entity.id)
    return record.slug if record is not None else None


async def category_segments(session: AsyncSession, category: Category) -> list[str]:
    """Slugs of a category's chain (ancestors then itself), skipping slug-less nodes."""
    segments = []
    for node in [*await categories_repo.get_ancestors(session, category), category]:
        slug = await _slug(session, CATEGORY_TYPE, node)
        if slug:
            segments.append(slug)
    return segments


class CategoryUrlable(Urlable):
    entity_type = CATEGORY_TYPE
    model = Category

    async def build_full_url(self, session: AsyncSession, entity: Category) -> str:
        if not await _slug(session, CATEGORY_TYPE, entity):
            return ""
        return "/".join(await category_segments(session, entity))

    async def list_dependents(self, session: AsyncSession, entity: Category) -> list[Any]:
        """Every nested category (breadth first), then every live product under the subtree."""
        descendants: list[Category] = []
        seen = {entity.id}
        frontier = [entity.id]

        while frontier:
            children = [
                child
                for child in await categories_repo.list_children(session, parent_ids=frontier)
                if child.id not in seen
            ]
            seen.update(child.id for child in children)
            descendants.extend(children)
            frontier = [child.id for child in children]

        products = await products_repo.list_by_categories(
            session,
            category_ids=[entity.id, *(category.id for category in descendants)],
        )
        return [*descendants, *products]


class ProductUrlable(Urlable):
    entity_type = PRODUCT_TYPE
    model = Product

    async def build_full_url(self, session: AsyncSession, entity: Product) -> str:
        own = await _slug(session, PRODUCT_TYPE, entity)
        if not own:
            return ""

        segments = []
        if entity.category_id is not None:
            category = await categories_repo.get_by_id(session, category_id=entity.category_id)
            if category is not None:
                segments = await category_segments(session, category)

        return "/".join([*segments, own])


def register_catalog_urlables() -> None:
    """Register the catalog types; called once at startup."""
    urlable_registry.register_class(CategoryUrlable)
    urlable_registry.register_class(ProductUrlable)
