"""Per-request caller context."""

from dataclasses import dataclass
from typing import Optional

from familyhub.errors import Forbidden, NoActiveFamily


@dataclass(frozen=True)
class RequestContext:
    """Who is calling and in which family, resolved once at the API boundary."""

    user_id: str
    email: str
    family_id: Optional[str] = None
    role: Optional[str] = None  # active membership role in family_id

    @property
    def is_admin(self) -> bool:
        return self.family_id is not None and self.role == "admin"

    def require_family(self) -> str:
        if not self.family_id:
            raise NoActiveFamily()
        return self.family_id

    def require_admin(self) -> str:
        family_id = self.require_family()
        if not self.is_admin:
            raise Forbidden()
        return family_id
