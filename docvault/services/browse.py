"""Browse engine — filters and sorts the caller's in-memory record list.

Pure and deterministic: the same records and query always yield the same
order, so the view is recomputed from scratch on every query change.
"""

from enum import Enum
from typing import Callable, Dict, List, Sequence

from pydantic import BaseModel, field_validator

from docvault.schemas.schemas import FileRecord
from docvault.services.classifier import Category

ALL = "all"


class SortField(str, Enum):
    NAME = "name"
    CREATED_AT = "created_at"
    SIZE_BYTES = "size_bytes"
    CATEGORY = "category"


class SortDir(str, Enum):
    ASC = "asc"
    DESC = "desc"


class BrowseQuery(BaseModel):
    text: str = ""
    category: str = ALL
    sort_field: SortField = SortField.CREATED_AT
    sort_dir: SortDir = SortDir.DESC

    class Config:
        frozen = True

    @field_validator("category", mode="before")
    @classmethod
    def _known_category(cls, v):
        v = getattr(v, "value", v) or ALL
        if v != ALL:
            Category(v)
        return v


SORT_KEYS: Dict[SortField, Callable[[FileRecord], object]] = {
    SortField.NAME: lambda r: r.name.casefold(),
    SortField.CREATED_AT: lambda r: r.created_at,
    SortField.SIZE_BYTES: lambda r: r.size_bytes,
    SortField.CATEGORY: lambda r: r.category.value,
}


def matches_text(record: FileRecord, text: str) -> bool:
    """Case-insensitive substring match on name, description or any tag."""
    q = text.strip().casefold()
    if not q:
        return True
    if q in record.name.casefold():
        return True
    if record.description and q in record.description.casefold():
        return True
    return any(q in tag.casefold() for tag in record.tags)


def matches_category(record: FileRecord, category: str) -> bool:
    return category == ALL or record.category.value == category


def view(records: Sequence[FileRecord], query: BrowseQuery) -> List[FileRecord]:
    """Filter, then sort. The full result is returned; paging is the caller's business.

    Ties on the sort key are broken by id, so descending is the exact reverse
    of ascending and re-applying a query never reorders its own output.
    """
    selected = [
        r for r in records
        if matches_text(r, query.text) and matches_category(r, query.category)
    ]
    key = SORT_KEYS[query.sort_field]
    selected.sort(key=lambda r: (key(r), r.id))
    if query.sort_dir == SortDir.DESC:
        selected.reverse()
    return selected


def toggle_sort(query: BrowseQuery, field: SortField) -> BrowseQuery:
    """Clicking the active column flips direction; a new column starts ascending."""
    if query.sort_field == field:
        flipped = SortDir.ASC if query.sort_dir == SortDir.DESC else SortDir.DESC
        return query.model_copy(update={"sort_dir": flipped})
    return query.model_copy(update={"sort_field": field, "sort_dir": SortDir.ASC})
