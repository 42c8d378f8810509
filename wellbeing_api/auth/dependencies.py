from dataclasses import dataclass

import jwt
from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from wellbeing_api.auth import jwt_handler
from wellbeing_api.core import config
from wellbeing_api.core.errors import ForbiddenError

security = HTTPBearer()

STUDENT_ROLE = "student"
ADMIN_ROLE = "admin"
VOLUNTEER_ROLE = "volunteer"


@dataclass(frozen=True)
class CurrentUser:
    id: str
    role: str
    email: str | None = None

    @property
    def is_student(self) -> bool:
        return self.role == STUDENT_ROLE

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE

    @property
    def is_professional(self) -> bool:
        return self.role in config.PROFESSIONAL_ROLES

    def can_manage(self, mentor_id: str) -> bool:
        """A professional manages their own calendar; admins manage anyone's."""
        return self.is_admin or (self.is_professional and self.id == mentor_id)


def _known_roles() -> set[str]:
    return {STUDENT_ROLE, ADMIN_ROLE, VOLUNTEER_ROLE, *config.PROFESSIONAL_ROLES}


def get_current_user(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> CurrentUser:
    token = credentials.credentials
    try:
        payload = jwt_handler.decode_access_token(token)
    except jwt.PyJWTError as exc:
        raise HTTPException(status_code=401, detail="Invalid token") from exc

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(status_code=401, detail="Invalid token subject")

    role = str(payload.get("role") or "").strip().lower()
    if role not in _known_roles():
        raise HTTPException(status_code=401, detail="Invalid token role")

    return CurrentUser(id=subject, role=role, email=payload.get("email"))


def require_student(current_user: CurrentUser, action: str) -> None:
    if not current_user.is_student:
        raise ForbiddenError(f"Only students can {action}.")


def require_manager(current_user: CurrentUser, mentor_id: str, action: str) -> None:
    if not current_user.can_manage(mentor_id):
        raise ForbiddenError(f"Only the professional or an admin can {action}.")
