"""User lookups needed by the authorization rules."""

from typing import Iterable

from sqlalchemy import or_

from taskgate.models import User
from taskgate.store import EntityStore


async def department_map(store: EntityStore, user_ids: Iterable[str]) -> dict[str, str | None]:
    """Map each known user id to its department."""
    ids = sorted(set(user_ids))
    if not ids:
        return {}
    rows = await store.find_columns(User.id, User.department, where=[User.id.in_(ids)])
    return {user_id: department for user_id, department in rows}


async def resolve_user(store: EntityStore, identifier: str) -> User | None:
    """Find a user by id or by username."""
    users = await store.find(User, or_(User.id == identifier, User.username == identifier))
    return users[0] if users else None
