"""
Request identity and admin authorization.

Authentication itself happens upstream; the platform forwards the signed-in
user's id in the ``X-User-Id`` header. Admin-only routes are grouped on one
router that carries ``require_admin`` as a dependency, so handlers never
check the admin flag themselves.
"""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from glowify.core.errors import ConflictError, NotAuthenticated, NotAuthorized
from glowify.data.database import atomic, get_db
from glowify.data.models import AdminUser
from glowify.utils.logger import get_logger, log_operation

logger = get_logger("api.auth")

USER_ID_HEADER = "X-User-Id"


def get_current_user_id(x_user_id: Optional[str] = Header(default=None, alias=USER_ID_HEADER)) -> Optional[str]:
    """Signed-in user id, or None for guests."""
    if x_user_id is None:
        return None
    return x_user_id.strip() or None


def require_user(user_id: Optional[str] = Depends(get_current_user_id)) -> str:
    if user_id is None:
        raise NotAuthenticated()
    return user_id


def is_admin(session: Session, user_id: str) -> bool:
    stmt = select(AdminUser.is_admin).where(AdminUser.user_id == user_id)
    return bool(session.execute(stmt).scalar_one_or_none())


def require_admin(user_id: str = Depends(require_user), db: Session = Depends(get_db)) -> str:
    if not is_admin(db, user_id):
        log_operation(logger, "auth", "require_admin", user_id=user_id, result="denied")
        raise NotAuthorized()
    return user_id


def _grant_admin(session: Session, user_id: str) -> AdminUser:
    admin = session.execute(select(AdminUser).where(AdminUser.user_id == user_id)).scalar_one_or_none()
    if admin is None:
        admin = AdminUser(user_id=user_id, is_admin=True)
        session.add(admin)
    else:
        admin.is_admin = True
    return admin


def make_admin(session: Session, user_id: str) -> AdminUser:
    """Grant admin rights, creating the row or re-enabling an existing one."""
    with atomic(session):
        admin = _grant_admin(session, user_id)
    log_operation(logger, "auth", "make_admin", user_id=user_id, result="success")
    return admin


def setup_first_admin(session: Session, user_id: str) -> AdminUser:
    """
    Make ``user_id`` the first admin of a fresh install.

    Raises:
        ConflictError: an admin already exists; further admins are granted
            with ``python -m glowify.admin grant``.
    """
    with atomic(session):
        existing = session.execute(
            select(func.count()).select_from(AdminUser).where(AdminUser.is_admin.is_(True))
        ).scalar_one()
        if existing:
            raise ConflictError("An admin is already configured")
        admin = _grant_admin(session, user_id)
    log_operation(logger, "auth", "setup_first_admin", user_id=user_id, result="success")
    return admin
