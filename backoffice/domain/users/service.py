"""User service - Business logic for users, permissions and hierarchy assignments"""

import logging

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...auth import get_accessible_branch_ids, get_user_permission_codes, has_permission, is_root_user
from ...cache import invalidate_user_permissions_cache
from ...config import ROOT_USERNAME
from ...models import User, UserAssignment
from ..hierarchy.repository import HierarchyRepository
from .schemas import (
    AssignmentTarget,
    BulkAssignmentRequest,
    PermissionCheckResponse,
    SkippedAssignment,
    UserCreate,
    UserUpdate,
)
from .repository import UserRepository

logger = logging.getLogger(__name__)


class UserService:
    """Service layer for users and their access scope"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = UserRepository()
        self.hierarchy = HierarchyRepository()

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    def get_users(self) -> list[User]:
        return self.repo.get_users(self.db)

    def get_user(self, user_id: int) -> User:
        user = self.repo.get_user_by_id(self.db, user_id)
        if not user:
            raise HTTPException(status_code=404, detail=f"User not found with id: {user_id}")
        return user

    def create_user(self, data: UserCreate) -> User:
        if self.repo.get_user_by_username(self.db, data.username):
            raise HTTPException(status_code=409, detail=f"Username '{data.username}' already exists")

        user = self.repo.create_user(
            self.db,
            User(username=data.username, full_name=data.fullName, email=data.email, active=data.active),
        )
        if data.permissions:
            self.repo.replace_permissions(self.db, user.id, list(dict.fromkeys(data.permissions)))
            self.db.refresh(user)
        logger.info(f"✅ Created user {user.id} ({user.username})")
        return user

    def update_user(self, user_id: int, data: UserUpdate) -> User:
        user = self.get_user(user_id)
        return self.repo.update_user(
            self.db, user, full_name=data.fullName, email=data.email, active=data.active
        )

    def delete_user(self, user_id: int) -> dict:
        user = self.get_user(user_id)
        if user.username == ROOT_USERNAME:
            raise HTTPException(status_code=400, detail="The root user cannot be deleted")
        self.repo.delete_user(self.db, user)
        invalidate_user_permissions_cache(user_id)
        logger.info(f"🗑️ Deleted user {user_id}")
        return {"message": "User deleted"}

    # ------------------------------------------------------------------
    # Permissions
    # ------------------------------------------------------------------

    def get_permissions(self, user_id: int) -> list[str]:
        self.get_user(user_id)
        return self.repo.get_permission_codes(self.db, user_id)

    def replace_permissions(self, user_id: int, codes: list[str]) -> list[str]:
        self.get_user(user_id)
        self.repo.replace_permissions(self.db, user_id, codes)
        invalidate_user_permissions_cache(user_id)
        logger.info(f"🔄 Replaced permissions for user {user_id} ({len(codes)} codes)")
        return self.repo.get_permission_codes(self.db, user_id)

    def check_permission(self, user_id: int, code: str) -> PermissionCheckResponse:
        user = self.get_user(user_id)
        granted = user.active and has_permission(self.db, user, code)
        return PermissionCheckResponse(userId=user_id, permission=code, granted=granted)

    def describe_access(self, user: User) -> dict:
        """Permissions and branch scope of the session user"""
        branch_ids = get_accessible_branch_ids(self.db, user)
        return {
            "userId": user.id,
            "username": user.username,
            "root": is_root_user(user),
            "permissions": sorted(get_user_permission_codes(self.db, user)),
            "accessibleBranchIds": sorted(branch_ids) if branch_ids is not None else None,
        }

    # ------------------------------------------------------------------
    # Assignments
    # ------------------------------------------------------------------

    def get_assignments(self, user_id: int, include_inactive: bool = False) -> list[UserAssignment]:
        self.get_user(user_id)
        return self.repo.get_assignments(self.db, user_id, include_inactive)

    def _ensure_node_active(self, target: AssignmentTarget) -> None:
        if target.branchId is not None:
            node, label = self.hierarchy.get_branch_by_id(self.db, target.branchId), f"Branch {target.branchId}"
        elif target.subareaId is not None:
            node, label = self.hierarchy.get_sub_area_by_id(self.db, target.subareaId), f"Sub-area {target.subareaId}"
        else:
            node, label = self.hierarchy.get_area_by_id(self.db, target.areaId), f"Area {target.areaId}"

        if node is None:
            raise HTTPException(status_code=404, detail=f"{label} not found")
        if not node.active:
            raise HTTPException(status_code=400, detail=f"{label} is inactive")

    def assign(self, target: AssignmentTarget) -> UserAssignment:
        """Scope a user to one node; a previously removed assignment is reactivated"""
        self.get_user(target.userId)
        self._ensure_node_active(target)

        existing = self.repo.find_assignment(
            self.db, target.userId, target.areaId, target.subareaId, target.branchId
        )
        if existing and existing.active:
            raise HTTPException(status_code=409, detail="User is already assigned to this node")
        if existing:
            existing.active = True
            assignment = self.repo.save_assignment(self.db, existing)
            logger.info(f"🔄 Reactivated assignment {assignment.id} for user {target.userId}")
            return assignment

        assignment = self.repo.save_assignment(
            self.db,
            UserAssignment(
                user_id=target.userId,
                area_id=target.areaId,
                sub_area_id=target.subareaId,
                branch_id=target.branchId,
                active=True,
            ),
        )
        logger.info(f"✅ Assigned user {target.userId} at {assignment.level} level")
        return assignment

    def remove(self, target: AssignmentTarget) -> UserAssignment:
        self.get_user(target.userId)
        existing = self.repo.find_assignment(
            self.db, target.userId, target.areaId, target.subareaId, target.branchId
        )
        if not existing or not existing.active:
            raise HTTPException(status_code=404, detail="Assignment not found")
        return self._deactivate(existing)

    def deactivate_assignment(self, assignment_id: int) -> UserAssignment:
        assignment = self.repo.get_assignment_by_id(self.db, assignment_id)
        if not assignment:
            raise HTTPException(status_code=404, detail=f"Assignment not found with id: {assignment_id}")
        return self._deactivate(assignment)

    def _deactivate(self, assignment: UserAssignment) -> UserAssignment:
        assignment.active = False
        assignment = self.repo.save_assignment(self.db, assignment)
        logger.info(f"⏸️ Deactivated assignment {assignment.id} for user {assignment.user_id}")
        return assignment

    def assign_bulk(self, data: BulkAssignmentRequest) -> tuple[list[UserAssignment], list[SkippedAssignment]]:
        return self._bulk(data, self.assign)

    def remove_bulk(self, data: BulkAssignmentRequest) -> tuple[list[UserAssignment], list[SkippedAssignment]]:
        return self._bulk(data, self.remove)

    def _bulk(self, data: BulkAssignmentRequest, operation):
        """Apply an assignment operation to every target; failures are reported per target"""
        self.get_user(data.userId)
        processed: list[UserAssignment] = []
        skipped: list[SkippedAssignment] = []
        for target in data.targets():
            try:
                processed.append(operation(target))
            except HTTPException as e:
                self.db.rollback()
                skipped.append(
                    SkippedAssignment(
                        areaId=target.areaId,
                        subareaId=target.subareaId,
                        branchId=target.branchId,
                        reason=str(e.detail),
                    )
                )
        if skipped:
            logger.warning(f"⚠️ Bulk assignment for user {data.userId}: {len(skipped)} targets skipped")
        return processed, skipped
