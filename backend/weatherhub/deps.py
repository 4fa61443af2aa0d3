from __future__ import annotations

from typing import Optional
from uuid import UUID

from fastapi import Path, Request

from .errors import InvalidID, InvalidParameter, NotFound, ReferenceNotFound
from .storage import Storage


def get_store(request: Request) -> Storage:
    return request.app.state.store


def path_id(id: str = Path(...)) -> UUID:
    try:
        return UUID(id)
    except ValueError as exc:
        raise InvalidID(f"invalid id {id}: {exc}") from None


def parse_city_id(raw: Optional[str]) -> Optional[UUID]:
    if not raw:
        return None
    try:
        return UUID(raw)
    except ValueError:
        raise InvalidParameter(f"city_id must be a valid id, got {raw}") from None


def ensure_city_exists(store: Storage, city_id: UUID) -> None:
    try:
        store.get_city_by_id(city_id)
    except NotFound as exc:
        raise ReferenceNotFound(exc.message) from exc
