from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable, List, Optional, TypeVar

from controlclin.core.exceptions import PermissionDenied
from controlclin.db.models import Role, User

T = TypeVar("T")


class AccessMode(str, Enum):
    ADMIN = "ADMIN"
    PROFESSIONAL = "PROFESSIONAL"


@dataclass(frozen=True)
class AccessScope:
    """
    Who is reading. In PROFESSIONAL mode only records tied to
    ``professional_id`` are visible, and a missing id means nothing is.
    """
    mode: AccessMode = AccessMode.ADMIN
    professional_id: Optional[str] = None

    @property
    def denies_everything(self) -> bool:
        return self.mode == AccessMode.PROFESSIONAL and not self.professional_id

    def apply(self, items: Iterable[T], owner: Callable[[T], Optional[str]]) -> List[T]:
        if self.denies_everything:
            return []
        if self.professional_id:
            return [item for item in items if owner(item) == self.professional_id]
        return list(items)

    def allows(self, owner_id: Optional[str]) -> bool:
        if self.denies_everything:
            return False
        if self.professional_id:
            return owner_id == self.professional_id
        return True


ADMIN_SCOPE = AccessScope()


def scope_for_user(user: User, mode: Optional[AccessMode] = None, professional_id: Optional[str] = None) -> AccessScope:
    """Professionals are always pinned to their own record; admins may narrow."""
    if user.role in (Role.PROFESSIONAL,):
        return AccessScope(mode=AccessMode.PROFESSIONAL, professional_id=user.professional_id)
    return AccessScope(mode=mode or AccessMode.ADMIN, professional_id=professional_id)


def ensure_tenant_access(user: User, tenant_id: str) -> None:
    if user.role == Role.SUPER_ADMIN:
        return
    if user.tenant_id != tenant_id:
        raise PermissionDenied("Not authorized to access this clinic")


def ensure_clinic_admin(user: User, tenant_id: str) -> None:
    if user.role == Role.SUPER_ADMIN:
        return
    if user.role != Role.CLINIC_ADMIN or user.tenant_id != tenant_id:
        raise PermissionDenied("Only clinic administrators can perform this action")
