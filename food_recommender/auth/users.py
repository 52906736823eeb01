from __future__ import annotations

from typing import Any

import bcrypt

_users: dict[str, dict[str, Any]] = {}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def add_user(username: str, password: str, role: str, user_id: str) -> None:
    """Register a login. ``user_id`` links it to the order history in the store."""
    _users[username] = {
        "password_hash": _hash_password(password),
        "role": role,
        "user_id": user_id,
    }


def _seed_users() -> None:
    """Pre-seed demo logins on import; ids match the packaged seed orders."""
    add_user("user", "user123", "user", "u1")
    add_user("newbie", "newbie123", "user", "u9")
    add_user("admin", "admin123", "admin", "admin")


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{username, role, user_id}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return {"username": username, "role": record["role"], "user_id": record["user_id"]}
    return None


_seed_users()
