"""Hierarchy router - FastAPI endpoints for areas, sub-areas and branches"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ...auth import (
    AREA_CREATE,
    AREA_DELETE,
    AREA_EDIT,
    AREA_VIEW,
    BRANCH_CREATE,
    BRANCH_DELETE,
    BRANCH_EDIT,
    BRANCH_VIEW,
    SUBAREA_CREATE,
    SUBAREA_DELETE,
    SUBAREA_EDIT,
    SUBAREA_VIEW,
    get_current_user,
    require_permission,
)
from ...database import get_db
from ...models import Area, Branch, SubArea
from .schemas import (
    AreaCreate,
    AreaResponse,
    AreaUpdate,
    BranchCreate,
    BranchGroupResponse,
    BranchResponse,
    BranchUpdate,
    SelectionRequest,
    SelectionResponse,
    SubAreaCreate,
    SubAreaResponse,
    SubAreaUpdate,
)
from .service import HierarchyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/calls", tags=["Hierarchy"])


def get_hierarchy_service(db: Session = Depends(get_db)) -> HierarchyService:
    """Dependency injection for HierarchyService"""
    return HierarchyService(db)


def area_response(area: Area) -> AreaResponse:
    return AreaResponse(
        id=area.id,
        name=area.name,
        code=area.code,
        description=area.description,
        active=area.active,
        createdAt=area.created_at,
        updatedAt=area.updated_at,
    )


def sub_area_response(sub_area: SubArea) -> SubAreaResponse:
    return SubAreaResponse(
        id=sub_area.id,
        name=sub_area.name,
        code=sub_area.code,
        description=sub_area.description,
        active=sub_area.active,
        areaId=sub_area.area_id,
        areaName=sub_area.area.name if sub_area.area else None,
        createdAt=sub_area.created_at,
        updatedAt=sub_area.updated_at,
    )


def branch_response(branch: Branch) -> BranchResponse:
    return BranchResponse(
        id=branch.id,
        name=branch.name,
        code=branch.code,
        description=branch.description,
        address=branch.address,
        phone=branch.phone,
        email=branch.email,
        active=branch.active,
        areaId=branch.area_id,
        areaName=branch.area.name if branch.area else None,
        subareaId=branch.sub_area_id,
        subareaName=branch.sub_area.name if branch.sub_area else None,
        createdAt=branch.created_at,
        updatedAt=branch.updated_at,
    )


# ============================================================================
# AREAS
# ============================================================================


@router.get("/areas", response_model=list[AreaResponse], dependencies=[Depends(require_permission(AREA_VIEW))])
async def get_areas(service: HierarchyService = Depends(get_hierarchy_service)):
    """Get all areas"""
    return [area_response(a) for a in service.get_areas()]


@router.get(
    "/areas/active", response_model=list[AreaResponse], dependencies=[Depends(require_permission(AREA_VIEW))]
)
async def get_active_areas(service: HierarchyService = Depends(get_hierarchy_service)):
    return [area_response(a) for a in service.get_areas(active_only=True)]


@router.get(
    "/areas/search", response_model=list[AreaResponse], dependencies=[Depends(require_permission(AREA_VIEW))]
)
async def search_areas(
    name: str = Query(..., min_length=1),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    """Case-insensitive substring search on area names"""
    return [area_response(a) for a in service.search_areas(name)]


@router.get("/areas/{area_id}", response_model=AreaResponse, dependencies=[Depends(require_permission(AREA_VIEW))])
async def get_area(area_id: int, service: HierarchyService = Depends(get_hierarchy_service)):
    return area_response(service.get_area(area_id))


@router.post(
    "/areas", response_model=AreaResponse, status_code=201, dependencies=[Depends(require_permission(AREA_CREATE))]
)
async def create_area(data: AreaCreate, service: HierarchyService = Depends(get_hierarchy_service)):
    return area_response(service.create_area(data))


@router.put("/areas/{area_id}", response_model=AreaResponse, dependencies=[Depends(require_permission(AREA_EDIT))])
async def update_area(
    area_id: int,
    data: AreaUpdate,
    service: HierarchyService = Depends(get_hierarchy_service),
):
    return area_response(service.update_area(area_id, data))


@router.patch(
    "/areas/{area_id}/activate", response_model=AreaResponse, dependencies=[Depends(require_permission(AREA_EDIT))]
)
async def activate_area(area_id: int, service: HierarchyService = Depends(get_hierarchy_service)):
    return area_response(service.set_area_active(area_id, True))


@router.patch(
    "/areas/{area_id}/deactivate", response_model=AreaResponse, dependencies=[Depends(require_permission(AREA_EDIT))]
)
async def deactivate_area(area_id: int, service: HierarchyService = Depends(get_hierarchy_service)):
    return area_response(service.set_area_active(area_id, False))


@router.delete("/areas/{area_id}", dependencies=[Depends(require_permission(AREA_DELETE))])
async def delete_area(area_id: int, service: HierarchyService = Depends(get_hierarchy_service)):
    return service.delete_area(area_id)


# ============================================================================
# SUB-AREAS
# ============================================================================


@router.get(
    "/subareas", response_model=list[SubAreaResponse], dependencies=[Depends(require_permission(SUBAREA_VIEW))]
)
async def get_sub_areas(service: HierarchyService = Depends(get_hierarchy_service)):
    return [sub_area_response(s) for s in service.get_sub_areas()]


@router.get(
    "/subareas/active",
    response_model=list[SubAreaResponse],
    dependencies=[Depends(require_permission(SUBAREA_VIEW))],
)
async def get_active_sub_areas(service: HierarchyService = Depends(get_hierarchy_service)):
    return [sub_area_response(s) for s in service.get_sub_areas(active_only=True)]


@router.get(
    "/subareas/search",
    response_model=list[SubAreaResponse],
    dependencies=[Depends(require_permission(SUBAREA_VIEW))],
)
async def search_sub_areas(
    name: str = Query(..., min_length=1),
    areaId: int = Query(None),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    """Search sub-areas by name, optionally within one area"""
    return [sub_area_response(s) for s in service.search_sub_areas(name, areaId)]


@router.get(
    "/subareas/area/{area_id}",
    response_model=list[SubAreaResponse],
    dependencies=[Depends(require_permission(SUBAREA_VIEW))],
)
async def get_sub_areas_by_area(
    area_id: int,
    activeOnly: bool = Query(False),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    return [sub_area_response(s) for s in service.get_sub_areas(area_id, activeOnly)]


@router.get(
    "/subareas/{sub_area_id}",
    response_model=SubAreaResponse,
    dependencies=[Depends(require_permission(SUBAREA_VIEW))],
)
async def get_sub_area(sub_area_id: int, service: HierarchyService = Depends(get_hierarchy_service)):
    return sub_area_response(service.get_sub_area(sub_area_id))


@router.post(
    "/subareas",
    response_model=SubAreaResponse,
    status_code=201,
    dependencies=[Depends(require_permission(SUBAREA_CREATE))],
)
async def create_sub_area(data: SubAreaCreate, service: HierarchyService = Depends(get_hierarchy_service)):
    return sub_area_response(service.create_sub_area(data))


@router.put(
    "/subareas/{sub_area_id}",
    response_model=SubAreaResponse,
    dependencies=[Depends(require_permission(SUBAREA_EDIT))],
)
async def update_sub_area(
    sub_area_id: int,
    data: SubAreaUpdate,
    service: HierarchyService = Depends(get_hierarchy_service),
):
    return sub_area_response(service.update_sub_area(sub_area_id, data))


@router.patch(
    "/subareas/{sub_area_id}/activate",
    response_model=SubAreaResponse,
    dependencies=[Depends(require_permission(SUBAREA_EDIT))],
)
async def activate_sub_area(sub_area_id: int, service: HierarchyService = Depends(get_hierarchy_service)):
    return sub_area_response(service.set_sub_area_active(sub_area_id, True))


@router.patch(
    "/subareas/{sub_area_id}/deactivate",
    response_model=SubAreaResponse,
    dependencies=[Depends(require_permission(SUBAREA_EDIT))],
)
async def deactivate_sub_area(sub_area_id: int, service: HierarchyService = Depends(get_hierarchy_service)):
    return sub_area_response(service.set_sub_area_active(sub_area_id, False))


@router.delete("/subareas/{sub_area_id}", dependencies=[Depends(require_permission(SUBAREA_DELETE))])
async def delete_sub_area(sub_area_id: int, service: HierarchyService = Depends(get_hierarchy_service)):
    return service.delete_sub_area(sub_area_id)


# ============================================================================
# BRANCHES
# ============================================================================


@router.get(
    "/branches", response_model=list[BranchResponse], dependencies=[Depends(require_permission(BRANCH_VIEW))]
)
async def get_branches(service: HierarchyService = Depends(get_hierarchy_service)):
    return [branch_response(b) for b in service.get_branches()]


@router.get(
    "/branches/active",
    response_model=list[BranchResponse],
    dependencies=[Depends(require_permission(BRANCH_VIEW))],
)
async def get_active_branches(service: HierarchyService = Depends(get_hierarchy_service)):
    return [branch_response(b) for b in service.get_branches(active_only=True)]


@router.get(
    "/branches/search",
    response_model=list[BranchResponse],
    dependencies=[Depends(require_permission(BRANCH_VIEW))],
)
async def search_branches(
    name: str = Query(..., min_length=1),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    return [branch_response(b) for b in service.search_branches(name)]


@router.get(
    "/branches/area/{area_id}",
    response_model=list[BranchResponse],
    dependencies=[Depends(require_permission(BRANCH_VIEW))],
)
async def get_branches_by_area(
    area_id: int,
    activeOnly: bool = Query(False),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    service.get_area(area_id)
    return [branch_response(b) for b in service.get_branches(area_id=area_id, active_only=activeOnly)]


@router.get(
    "/branches/subarea/{sub_area_id}",
    response_model=list[BranchResponse],
    dependencies=[Depends(require_permission(BRANCH_VIEW))],
)
async def get_branches_by_sub_area(
    sub_area_id: int,
    activeOnly: bool = Query(False),
    service: HierarchyService = Depends(get_hierarchy_service),
):
    service.get_sub_area(sub_area_id)
    return [branch_response(b) for b in service.get_branches(sub_area_id=sub_area_id, active_only=activeOnly)]


@router.get(
    "/branches/{branch_id}", response_model=BranchResponse, dependencies=[Depends(require_permission(BRANCH_VIEW))]
)
async def get_branch(branch_id: int, service: HierarchyService = Depends(get_hierarchy_service)):
    return branch_response(service.get_branch(branch_id))


@router.post(
    "/branches",
    response_model=BranchResponse,
    status_code=201,
    dependencies=[Depends(require_permission(BRANCH_CREATE))],
)
async def create_branch(data: BranchCreate, service: HierarchyService = Depends(get_hierarchy_service)):
    return branch_response(service.create_branch(data))


@router.put(
    "/branches/{branch_id}", response_model=BranchResponse, dependencies=[Depends(require_permission(BRANCH_EDIT))]
)
async def update_branch(
    branch_id: int,
    data: BranchUpdate,
    service: HierarchyService = Depends(get_hierarchy_service),
):
    return branch_response(service.update_branch(branch_id, data))


@router.patch(
    "/branches/{branch_id}/activate",
    response_model=BranchResponse,
    dependencies=[Depends(require_permission(BRANCH_EDIT))],
)
async def activate_branch(branch_id: int, service: HierarchyService = Depends(get_hierarchy_service)):
    return branch_response(service.set_branch_active(branch_id, True))


@router.patch(
    "/branches/{branch_id}/deactivate",
    response_model=BranchResponse,
    dependencies=[Depends(require_permission(BRANCH_EDIT))],
)
async def deactivate_branch(branch_id: int, service: HierarchyService = Depends(get_hierarchy_service)):
    return branch_response(service.set_branch_active(branch_id, False))


@router.delete("/branches/{branch_id}", dependencies=[Depends(require_permission(BRANCH_DELETE))])
async def delete_branch(branch_id: int, service: HierarchyService = Depends(get_hierarchy_service)):
    return service.delete_branch(branch_id)


# ============================================================================
# FILTER SELECTION
# ============================================================================


@router.post(
    "/hierarchy/selection",
    response_model=SelectionResponse,
    dependencies=[Depends(get_current_user)],
)
async def resolve_selection(
    data: SelectionRequest,
    service: HierarchyService = Depends(get_hierarchy_service),
):
    """Prune a posted area/sub-area/branch selection and list the options still available"""
    selection = service.build_selection(data)
    return SelectionResponse(
        areaIds=selection.selected_area_ids,
        subAreaIds=selection.selected_sub_area_ids,
        branchIds=selection.selected_branch_ids,
        availableSubAreaIds=[s.id for s in selection.available_sub_areas()],
        availableBranchIds=[b.id for b in selection.available_branches()],
        groups=[
            BranchGroupResponse(id=g.id, label=g.label, branchIds=[b.id for b in g.branches])
            for g in selection.grouped_branches()
        ],
        effectiveBranchIds=selection.effective_branch_ids(),
    )


__all__ = [
    "router",
    "area_response",
    "sub_area_response",
    "branch_response",
    "get_hierarchy_service",
]
