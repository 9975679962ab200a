"""User router - FastAPI endpoints for users, permissions and assignments"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import (
    USER_BRANCH_ASSIGN,
    USER_BRANCH_REMOVE,
    USER_BRANCH_VIEW,
    USER_MANAGE,
    USER_VIEW,
    get_current_user,
    require_permission,
)
from ...database import get_db
from ...models import User, UserAssignment
from .schemas import (
    AssignmentResponse,
    AssignmentTarget,
    BulkAssignmentRequest,
    BulkAssignmentResponse,
    MyPermissionsResponse,
    PermissionCheckResponse,
    PermissionsUpdate,
    UserCreate,
    UserResponse,
    UserUpdate,
)
from .service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/calls", tags=["Users"])
marketing_router = APIRouter(prefix="/api/marketing", tags=["User Assignments"])


def get_user_service(db: Session = Depends(get_db)) -> UserService:
    """Dependency injection for UserService"""
    return UserService(db)


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        fullName=user.full_name,
        email=user.email,
        active=user.active,
        permissions=sorted(p.code for p in user.permissions),
        createdAt=user.created_at,
    )


def assignment_response(assignment: UserAssignment) -> AssignmentResponse:
    return AssignmentResponse(
        id=assignment.id,
        userId=assignment.user_id,
        level=assignment.level,
        areaId=assignment.area_id,
        areaName=assignment.area.name if assignment.area else None,
        subareaId=assignment.sub_area_id,
        subareaName=assignment.sub_area.name if assignment.sub_area else None,
        branchId=assignment.branch_id,
        branchName=assignment.branch.name if assignment.branch else None,
        active=assignment.active,
        createdAt=assignment.created_at,
    )


def bulk_response(result) -> BulkAssignmentResponse:
    processed, skipped = result
    return BulkAssignmentResponse(
        processed=[assignment_response(a) for a in processed],
        skipped=skipped,
    )


# ============================================================================
# USERS
# ============================================================================


@router.get("/users", response_model=list[UserResponse], dependencies=[Depends(require_permission(USER_VIEW))])
async def get_users(service: UserService = Depends(get_user_service)):
    return [user_response(u) for u in service.get_users()]


@router.get("/users/{user_id}", response_model=UserResponse, dependencies=[Depends(require_permission(USER_VIEW))])
async def get_user(user_id: int, service: UserService = Depends(get_user_service)):
    return user_response(service.get_user(user_id))


@router.get("/users/{user_id}/username", dependencies=[Depends(get_current_user)])
async def get_username(user_id: int, service: UserService = Depends(get_user_service)):
    """Resolve a user id to a display name (used for 'created by' columns)"""
    user = service.get_user(user_id)
    return {"id": user.id, "username": user.username}


@router.post(
    "/users", response_model=UserResponse, status_code=201, dependencies=[Depends(require_permission(USER_MANAGE))]
)
async def create_user(data: UserCreate, service: UserService = Depends(get_user_service)):
    return user_response(service.create_user(data))


@router.put(
    "/users/{user_id}", response_model=UserResponse, dependencies=[Depends(require_permission(USER_MANAGE))]
)
async def update_user(user_id: int, data: UserUpdate, service: UserService = Depends(get_user_service)):
    return user_response(service.update_user(user_id, data))


@router.delete("/users/{user_id}", dependencies=[Depends(require_permission(USER_MANAGE))])
async def delete_user(user_id: int, service: UserService = Depends(get_user_service)):
    return service.delete_user(user_id)


# ============================================================================
# PERMISSIONS
# ============================================================================


@router.get("/users/{user_id}/permissions", dependencies=[Depends(require_permission(USER_VIEW))])
async def get_user_permissions(user_id: int, service: UserService = Depends(get_user_service)):
    return {"userId": user_id, "permissions": service.get_permissions(user_id)}


@router.put("/users/{user_id}/permissions", dependencies=[Depends(require_permission(USER_MANAGE))])
async def replace_user_permissions(
    user_id: int,
    data: PermissionsUpdate,
    service: UserService = Depends(get_user_service),
):
    """Replace the full permission set of a user"""
    return {"userId": user_id, "permissions": service.replace_permissions(user_id, data.permissions)}


@router.get(
    "/permissions/check", response_model=PermissionCheckResponse, dependencies=[Depends(get_current_user)]
)
async def check_permission(
    userId: int = Query(...),
    permission: str = Query(..., min_length=1),
    service: UserService = Depends(get_user_service),
):
    return service.check_permission(userId, permission)


@router.get("/permissions/me", response_model=MyPermissionsResponse)
async def get_my_permissions(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return MyPermissionsResponse(**service.describe_access(current_user))


# ============================================================================
# USER BRANCHES (call-service)
# ============================================================================


@router.post(
    "/user-branches/assign",
    response_model=AssignmentResponse,
    status_code=201,
    dependencies=[Depends(require_permission(USER_BRANCH_ASSIGN))],
)
async def assign_user(data: AssignmentTarget, service: UserService = Depends(get_user_service)):
    return assignment_response(service.assign(data))


@router.post(
    "/user-branches/assign-bulk",
    response_model=BulkAssignmentResponse,
    dependencies=[Depends(require_permission(USER_BRANCH_ASSIGN))],
)
async def assign_user_bulk(data: BulkAssignmentRequest, service: UserService = Depends(get_user_service)):
    return bulk_response(service.assign_bulk(data))


@router.post(
    "/user-branches/remove",
    response_model=AssignmentResponse,
    dependencies=[Depends(require_permission(USER_BRANCH_REMOVE))],
)
async def remove_user_assignment(data: AssignmentTarget, service: UserService = Depends(get_user_service)):
    return assignment_response(service.remove(data))


@router.post(
    "/user-branches/remove-bulk",
    response_model=BulkAssignmentResponse,
    dependencies=[Depends(require_permission(USER_BRANCH_REMOVE))],
)
async def remove_user_assignments_bulk(
    data: BulkAssignmentRequest, service: UserService = Depends(get_user_service)
):
    return bulk_response(service.remove_bulk(data))


@router.get(
    "/user-branches/user/{user_id}",
    response_model=list[AssignmentResponse],
    dependencies=[Depends(require_permission(USER_BRANCH_VIEW))],
)
async def get_user_assignments(
    user_id: int,
    includeInactive: bool = Query(False),
    service: UserService = Depends(get_user_service),
):
    return [assignment_response(a) for a in service.get_assignments(user_id, includeInactive)]


# ============================================================================
# USER ASSIGNMENTS (marketing-service)
# ============================================================================


@marketing_router.get("/user-assignments/my-assignments", response_model=list[AssignmentResponse])
async def get_my_assignments(
    current_user: User = Depends(get_current_user),
    service: UserService = Depends(get_user_service),
):
    return [assignment_response(a) for a in service.get_assignments(current_user.id)]


@marketing_router.get(
    "/user-assignments/user/{user_id}",
    response_model=list[AssignmentResponse],
    dependencies=[Depends(require_permission(USER_BRANCH_VIEW))],
)
async def get_marketing_user_assignments(user_id: int, service: UserService = Depends(get_user_service)):
    return [assignment_response(a) for a in service.get_assignments(user_id)]


@marketing_router.post(
    "/user-assignments",
    response_model=AssignmentResponse,
    status_code=201,
    dependencies=[Depends(require_permission(USER_BRANCH_ASSIGN))],
)
async def create_user_assignment(data: AssignmentTarget, service: UserService = Depends(get_user_service)):
    return assignment_response(service.assign(data))


@marketing_router.post(
    "/user-assignments/bulk",
    response_model=BulkAssignmentResponse,
    dependencies=[Depends(require_permission(USER_BRANCH_ASSIGN))],
)
async def create_user_assignments_bulk(
    data: BulkAssignmentRequest, service: UserService = Depends(get_user_service)
):
    return bulk_response(service.assign_bulk(data))


@marketing_router.delete(
    "/user-assignments/{assignment_id}",
    response_model=AssignmentResponse,
    dependencies=[Depends(require_permission(USER_BRANCH_REMOVE))],
)
async def deactivate_user_assignment(assignment_id: int, service: UserService = Depends(get_user_service)):
    return assignment_response(service.deactivate_assignment(assignment_id))


__all__ = ["router", "marketing_router", "get_user_service", "user_response"]
