"""
Read-only lookup of users and materials by name.

The user and material stores themselves live elsewhere; the HTTP routes
only need to turn a username or material name from a request into the
snapshot that gets copied into a new order.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from models.order import MaterialSnapshot, UserSnapshot


class Directory:
    """Immutable name -> snapshot maps, built once at startup."""

    def __init__(
        self,
        users: Iterable[UserSnapshot] = (),
        materials: Iterable[MaterialSnapshot] = (),
    ):
        self._users: Dict[str, UserSnapshot] = {u.username: u for u in users}
        self._materials: Dict[str, MaterialSnapshot] = {m.name.lower(): m for m in materials}

    def find_user(self, username: Optional[str]) -> Optional[UserSnapshot]:
        if not username:
            return None
        return self._users.get(username.strip())

    def find_material(self, name: Optional[str]) -> Optional[MaterialSnapshot]:
        """Case-insensitive material lookup."""
        if not name:
            return None
        return self._materials.get(name.strip().lower())

    def materials(self) -> List[MaterialSnapshot]:
        return sorted(self._materials.values(), key=lambda m: m.name)


# Catalog used when the app is started without one
DEFAULT_MATERIALS = (
    MaterialSnapshot("PLA", 0.05, 210, "white"),
    MaterialSnapshot("ABS", 0.06, 240, "black"),
    MaterialSnapshot("PETG", 0.07, 235, "clear"),
    MaterialSnapshot("TPU", 0.12, 225, "red"),
)

DEFAULT_USERS = (
    UserSnapshot("admin", "admin@printshop.local", "admin"),
    UserSnapshot("customer", "customer@printshop.local", "customer"),
    UserSnapshot("vip", "vip@printshop.local", "vip"),
)


def default_directory() -> Directory:
    return Directory(users=DEFAULT_USERS, materials=DEFAULT_MATERIALS)
