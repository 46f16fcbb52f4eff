"""Errors raised by the slug / url engine.

Conflict and not-found errors are HTTPExceptions so services can raise them
and routers re-raise them untouched; a mis-wired urlable type is a plain
exception because it must stop startup, not produce a response.
"""

from fastapi import HTTPException, status


class SlugConflictError(HTTPException):
    """Another active record of the same type/collection owns the slug."""

    def __init__(self, slug: str | None = None, collection: str | None = None):
        self.slug = slug
        self.collection = collection
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="The slug is already in use by another record.",
        )


class UrlConflictError(HTTPException):
    """Another active record (of any type) owns the computed full URL."""

    def __init__(self, full_url: str | None = None):
        self.full_url = full_url
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="This active URL is already used by another record.",
        )


class UrlNotFoundError(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Url not found",
        )


class SlugNotFoundError(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="The slug not found.",
        )


class UrlTooLongError(HTTPException):
    """A computed or requested full URL exceeds URL_MAX_LENGTH."""

    def __init__(self, length: int, max_length: int):
        self.length = length
        self.max_length = max_length
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"The URL is {length} characters long; the maximum is {max_length}.",
        )


class UrlContractError(Exception):
    """A urlable type was registered without a full URL builder."""

    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        super().__init__(f"The {entity_type} urlable must implement build_full_url().")


class UnknownUrlableTypeError(HTTPException):
    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No urlable type named {entity_type!r} is registered.",
        )
