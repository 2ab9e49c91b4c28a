"""
Viewer context

The authenticating front door forwards the signed-in user's id in the
X-User-Id header. Each request gets its own Viewer; nothing is kept globally.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Header


@dataclass(frozen=True)
class Viewer:
    """Identity acting on a request (id is None for anonymous visitors)"""
    id: Optional[str] = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.id)

    def owns(self, owner_id: Optional[str]) -> bool:
        return self.is_authenticated and owner_id is not None and self.id == owner_id


ANONYMOUS = Viewer()


def get_viewer(x_user_id: Optional[str] = Header(None)) -> Viewer:
    """FastAPI dependency resolving the current viewer"""
    if x_user_id and x_user_id.strip():
        return Viewer(id=x_user_id.strip())
    return ANONYMOUS
