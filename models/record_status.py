"""Row state shared by the slugs and urls tables."""

import enum


class RecordStatus(str, enum.Enum):
    """Lifecycle state of a slug or url row.

    ACTIVE rows participate in uniqueness and resolution. RETIRED rows are
    soft-deleted history: legacy url versions kept for redirects, or the slug of
    a soft-deleted entity waiting for restore. Purging removes rows physically.
    """

    ACTIVE = "active"
    RETIRED = "retired"


# Partial index predicate used by every "unique among active rows" index
ACTIVE_ROW_PREDICATE = "status = 'active'"
