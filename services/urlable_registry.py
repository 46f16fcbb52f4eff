"""Registry of entity types that own slugs and versioned full URLs.

Each entity type plugs into the engine through a Urlable subclass: the
discriminator stored in slugs/urls rows, a loader, the full URL builder, and
optionally the dependents whose URLs are derived from its own. Types are
registered at startup; a type without a URL builder is rejected there.
"""

import inspect
from abc import ABC, abstractmethod
from typing import Any, NamedTuple
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.ext.asyncio import AsyncSession

from services.exceptions import UrlContractError


class EntityRef(NamedTuple):
    """Polymorphic reference to any urlable entity."""

    entity_type: str
    entity_id: UUID

    def __str__(self) -> str:
        return f"{self.entity_type}:{self.entity_id}"


class Urlable(ABC):
    """Capabilities an entity type provides to the url engine."""

    #: Discriminator stored in slugs.slugable_type / urls.urlable_type
    entity_type: str
    #: ORM model class of the entity
    model: type

    async def load(self, session: AsyncSession, entity_id: UUID) -> Any | None:
        """Load a live entity by id (None if missing or soft-deleted)."""
        result = await session.execute(self.rebuild_query().where(self.model.id == entity_id))
        return result.scalar_one_or_none()

    @abstractmethod
    async def build_full_url(self, session: AsyncSession, entity: Any) -> str:
        """
        Return the canonical full URL of an entity.

        Must be deterministic, free of side effects, without query string or
        fragment, and without leading/trailing slashes.
        """

    async def list_dependents(self, session: AsyncSession, entity: Any) -> list[Any]:
        """Entities whose full URL is derived from this entity's (default: none)."""
        return []

    def default_collection(self, entity: Any) -> str | None:
        """Collection used when none is given; falls back to the entity's type attribute."""
        value = getattr(entity, "type", None)
        return str(value) if value not in (None, "") else None

    def rebuild_query(self) -> Select:
        """Selection of entities that should own an active url."""
        query = select(self.model)
        if hasattr(self.model, "deleted_at"):
            query = query.where(self.model.deleted_at.is_(None))
        return query

    @property
    def supports_cascade(self) -> bool:
        return type(self).list_dependents is not Urlable.list_dependents

    def ref(self, entity: Any) -> EntityRef:
        return EntityRef(self.entity_type, entity.id)


_by_type: dict[str, Urlable] = {}
_by_model: dict[type, Urlable] = {}


def register(urlable: Urlable) -> Urlable:
    """
    Register a urlable type.

    Raises:
        UrlContractError: If the type does not implement build_full_url or lacks
            an entity_type/model
    """
    entity_type = getattr(urlable, "entity_type", None) or type(urlable).__name__
    builder = getattr(type(urlable), "build_full_url", None)

    if (
        builder is None
        or getattr(builder, "__isabstractmethod__", False)
        or not inspect.iscoroutinefunction(builder)
        or getattr(urlable, "model", None) is None
    ):
        raise UrlContractError(entity_type)

    _by_type[entity_type] = urlable
    _by_model[urlable.model] = urlable
    return urlable


def register_class(urlable_cls: type) -> Urlable:
    """Instantiate and register a Urlable subclass; abstract classes are rejected."""
    if not isinstance(urlable_cls, type) or not issubclass(urlable_cls, Urlable):
        raise UrlContractError(getattr(urlable_cls, "__name__", str(urlable_cls)))

    if inspect.isabstract(urlable_cls):
        raise UrlContractError(getattr(urlable_cls, "entity_type", urlable_cls.__name__))

    return register(urlable_cls())


def unregister(entity_type: str) -> None:
    urlable = _by_type.pop(entity_type, None)
    if urlable is not None:
        _by_model.pop(urlable.model, None)


def get(entity_type: str) -> Urlable | None:
    return _by_type.get(entity_type)


def for_entity(entity: Any) -> Urlable | None:
    """Urlable registered for the entity's class (or one of its bases)."""
    for cls in type(entity).__mro__:
        urlable = _by_model.get(cls)
        if urlable is not None:
            return urlable
    return None


def require_for_entity(entity: Any) -> Urlable:
    urlable = for_entity(entity)
    if urlable is None:
        raise UrlContractError(type(entity).__name__)
    return urlable


def registered_types() -> list[str]:
    return sorted(_by_type)


async def load(session: AsyncSession, ref: EntityRef) -> Any | None:
    """Load the entity behind a reference; None for unknown types or dangling refs."""
    urlable = get(ref.entity_type)
    if urlable is None:
        return None
    return await urlable.load(session, ref.entity_id)
