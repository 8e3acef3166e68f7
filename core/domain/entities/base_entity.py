# core/domain/entities/base_entity.py
from __future__ import annotations

from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict

E = TypeVar("E", bound="MongoEntity")

BOOKKEEPING_FIELDS = ("created_at", "created_at_iso", "updated_at", "updated_at_iso")


class MongoEntity(BaseModel):
    """
    Base for every document the sync writes.

    - `_id` is exposed as a string `id`.
    - created_* is stamped on first insert, updated_* on every write
      (epoch ms + ISO-8601), both by the repositories.
    - Unknown stored keys are kept, so legacy documents still load.
    """

    id: Optional[str] = None  # maps _id
    created_at: Optional[int] = None
    created_at_iso: Optional[str] = None
    updated_at: Optional[int] = None
    updated_at_iso: Optional[str] = None

    model_config = ConfigDict(extra="allow")

    @classmethod
    def from_mongo(cls: Type[E], doc: Optional[dict[str, Any]]) -> Optional[E]:
        if not doc:
            return None
        data = dict(doc)
        if "_id" in data:
            data["id"] = str(data.pop("_id"))
        return cls.model_validate(data)

    def to_mongo(self) -> dict[str, Any]:
        """
        Full document for an insert (history rows). A set `id` becomes `_id`.
        """
        data = self.model_dump(mode="python", exclude_none=True)
        if "id" in data:
            data["_id"] = data.pop("id")
        return data

    def to_mongo_set(self) -> dict[str, Any]:
        """
        Payload for an upsert `$set`.

        None values are kept so a field that went null upstream is cleared
        on the stored row. `_id` and bookkeeping stamps are left out so they
        never collide with `$setOnInsert` or overwrite the stored document id.
        """
        data = self.model_dump(mode="python")
        data.pop("id", None)
        for f in BOOKKEEPING_FIELDS:
            data.pop(f, None)
        return data
