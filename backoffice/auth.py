import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from .cache import get_user_permissions_cached, set_user_permissions_cached
from .config import ROOT_USERNAME, USER_ID_HEADER
from .database import get_db
from .models import Branch, User, UserAssignment, UserPermission

logger = logging.getLogger(__name__)


# Permission codes understood by the API
AREA_VIEW = "area.view"
AREA_CREATE = "area.create"
AREA_EDIT = "area.edit"
AREA_DELETE = "area.delete"
SUBAREA_VIEW = "subarea.view"
SUBAREA_CREATE = "subarea.create"
SUBAREA_EDIT = "subarea.edit"
SUBAREA_DELETE = "subarea.delete"
BRANCH_VIEW = "branch.view"
BRANCH_CREATE = "branch.create"
BRANCH_EDIT = "branch.edit"
BRANCH_DELETE = "branch.delete"
USER_VIEW = "user.view"
USER_MANAGE = "user.manage"
USER_BRANCH_VIEW = "user.branch.view"
USER_BRANCH_ASSIGN = "user.branch.assign"
USER_BRANCH_REMOVE = "user.branch.remove"
CALL_REPORT_VIEW = "menu.3.view"
CALL_REPORT_CREATE = "menu.3.create"
CALL_REPORT_EDIT = "menu.3.edit"
CALL_REPORT_DELETE = "menu.3.delete"
CALL_STATUS_VIEW = "menu.3.status.view"
CALL_STATUS_CREATE = "menu.3.status.create"
CALL_STATUS_EDIT = "menu.3.status.edit"
CALL_STATUS_DELETE = "menu.3.status.delete"
MEMBER_VIEW = "marketing.member.view"
MEMBER_MANAGE = "marketing.member.manage"
GOODS_VIEW = "marketing.goods.view"
GOODS_MANAGE = "marketing.goods.manage"


def parse_user_id_header(raw: Optional[str]) -> Optional[int]:
    """Parse the user id header; anything that is not a positive integer is treated as absent"""
    if raw is None:
        return None
    try:
        user_id = int(raw.strip())
    except ValueError:
        logger.warning(f"⚠️ Failed to parse {USER_ID_HEADER} header: {raw!r}")
        return None
    return user_id if user_id > 0 else None


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    """Resolve the session user from the user id header"""
    user_id = parse_user_id_header(request.headers.get(USER_ID_HEADER))
    if user_id is None:
        logger.warning(f"Authentication failed for {request.url.path}: missing {USER_ID_HEADER}")
        raise HTTPException(status_code=401, detail="Not authenticated")

    user = db.query(User).filter(User.id == user_id).first()
    if not user or not user.active:
        logger.warning(f"Authentication failed for {request.url.path}: unknown user {user_id}")
        raise HTTPException(status_code=401, detail="Not authenticated")

    # Stash for logging middleware
    request.state.user_id = user.id
    return user


def is_root_user(user: Optional[User]) -> bool:
    return user is not None and user.username == ROOT_USERNAME


def get_user_permission_codes(db: Session, user: User) -> set[str]:
    """Permission codes for a user, served from cache when possible"""
    cached = get_user_permissions_cached(user.id)
    if cached is not None:
        return set(cached)

    codes = [
        code
        for (code,) in db.query(UserPermission.code).filter(UserPermission.user_id == user.id).all()
    ]
    set_user_permissions_cached(user.id, sorted(codes))
    return set(codes)


def has_permission(db: Session, user: User, code: str) -> bool:
    if is_root_user(user):
        logger.debug(f"Root user {user.id} bypassing permission check for {code}")
        return True
    return code in get_user_permission_codes(db, user)


def require_permission(code: str):
    """
    Dependency factory guarding an endpoint with a permission code.

    Example:
        @router.get("", dependencies=[Depends(require_permission(AREA_VIEW))])
    """

    def checker(
        current_user: User = Depends(get_current_user),
        db: Session = Depends(get_db),
    ) -> User:
        if not has_permission(db, current_user, code):
            logger.warning(f"⚠️ User {current_user.id} lacks permission {code}")
            raise HTTPException(status_code=403, detail=f"Missing permission: {code}")
        return current_user

    return checker


def get_accessible_branch_ids(db: Session, user: User) -> Optional[set[int]]:
    """
    Branch ids the user may see.

    Returns None when the user is unrestricted: the root user, or any user
    without active assignments.
    """
    if is_root_user(user):
        return None

    assignments = (
        db.query(UserAssignment)
        .filter(UserAssignment.user_id == user.id, UserAssignment.active.is_(True))
        .all()
    )
    if not assignments:
        return None

    branch_ids = {a.branch_id for a in assignments if a.branch_id is not None}
    sub_area_ids = {a.sub_area_id for a in assignments if a.sub_area_id is not None}
    area_ids = {
        a.area_id
        for a in assignments
        if a.area_id is not None and a.sub_area_id is None and a.branch_id is None
    }

    if sub_area_ids:
        branch_ids.update(
            bid for (bid,) in db.query(Branch.id).filter(Branch.sub_area_id.in_(sub_area_ids)).all()
        )
    if area_ids:
        branch_ids.update(
            bid for (bid,) in db.query(Branch.id).filter(Branch.area_id.in_(area_ids)).all()
        )
    return branch_ids


def scope_branch_ids(
    db: Session, user: User, requested: Optional[list[int]] = None
) -> Optional[list[int]]:
    """
    Intersect a requested branch filter with the user's access scope.

    None means no branch filter applies; an empty list means nothing is visible.
    """
    accessible = get_accessible_branch_ids(db, user)
    if accessible is None:
        return list(requested) if requested else None
    if requested:
        return [b for b in requested if b in accessible]
    return sorted(accessible)
