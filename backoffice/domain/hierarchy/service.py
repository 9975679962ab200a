"""Hierarchy service - Business logic for areas, sub-areas and branches"""

import logging
from typing import Optional

from fastapi import HTTPException
from sqlalchemy.orm import Session

from ...models import Area, Branch, SubArea
from .repository import HierarchyRepository
from .schemas import (
    AreaCreate,
    AreaUpdate,
    BranchCreate,
    BranchUpdate,
    SelectionRequest,
    SubAreaCreate,
    SubAreaUpdate,
)
from .selection import AreaNode, BranchNode, HierarchySelection, SubAreaNode

logger = logging.getLogger(__name__)


class HierarchyService:
    """Service layer for the area -> sub-area -> branch hierarchy"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = HierarchyRepository()

    # ------------------------------------------------------------------
    # Areas
    # ------------------------------------------------------------------

    def get_areas(self, active_only: bool = False) -> list[Area]:
        return self.repo.get_areas(self.db, active_only)

    def get_area(self, area_id: int) -> Area:
        area = self.repo.get_area_by_id(self.db, area_id)
        if not area:
            raise HTTPException(status_code=404, detail=f"Area not found with id: {area_id}")
        return area

    def search_areas(self, name: str) -> list[Area]:
        return self.repo.search_areas(self.db, name)

    def create_area(self, data: AreaCreate) -> Area:
        if self.repo.get_area_by_name(self.db, data.name):
            raise HTTPException(status_code=409, detail=f"Area '{data.name}' already exists")

        area = Area(name=data.name, code=data.code, description=data.description, active=data.active)
        area = self.repo.create(self.db, area)
        logger.info(f"✅ Created area {area.id} ({area.name})")
        return area

    def update_area(self, area_id: int, data: AreaUpdate) -> Area:
        area = self.get_area(area_id)
        if data.name is not None:
            existing = self.repo.get_area_by_name(self.db, data.name)
            if existing and existing.id != area.id:
                raise HTTPException(status_code=409, detail=f"Area '{data.name}' already exists")

        return self.repo.update(
            self.db,
            area,
            name=data.name,
            code=data.code,
            description=data.description,
            active=data.active,
        )

    def set_area_active(self, area_id: int, active: bool) -> Area:
        area = self.get_area(area_id)
        area.active = active
        self.db.commit()
        self.db.refresh(area)
        logger.info(f"{'✅ Activated' if active else '⏸️ Deactivated'} area {area_id}")
        return area

    def delete_area(self, area_id: int) -> dict:
        area = self.get_area(area_id)
        if self.repo.count_area_children(self.db, area_id):
            raise HTTPException(
                status_code=409, detail="Area still has sub-areas or branches; remove them first"
            )
        self.repo.delete_assignments_for(self.db, area_id=area_id)
        self.repo.delete(self.db, area)
        logger.info(f"🗑️ Deleted area {area_id}")
        return {"message": "Area deleted"}

    # ------------------------------------------------------------------
    # Sub-areas
    # ------------------------------------------------------------------

    def get_sub_areas(self, area_id: Optional[int] = None, active_only: bool = False) -> list[SubArea]:
        if area_id is not None:
            self.get_area(area_id)
        return self.repo.get_sub_areas(self.db, area_id, active_only)

    def get_sub_area(self, sub_area_id: int) -> SubArea:
        sub_area = self.repo.get_sub_area_by_id(self.db, sub_area_id)
        if not sub_area:
            raise HTTPException(status_code=404, detail=f"Sub-area not found with id: {sub_area_id}")
        return sub_area

    def search_sub_areas(self, name: str, area_id: Optional[int] = None) -> list[SubArea]:
        return self.repo.search_sub_areas(self.db, name, area_id)

    def create_sub_area(self, data: SubAreaCreate) -> SubArea:
        self.get_area(data.areaId)
        sub_area = SubArea(
            name=data.name,
            code=data.code,
            description=data.description,
            active=data.active,
            area_id=data.areaId,
        )
        sub_area = self.repo.create(self.db, sub_area)
        logger.info(f"✅ Created sub-area {sub_area.id} ({sub_area.name}) in area {data.areaId}")
        return sub_area

    def update_sub_area(self, sub_area_id: int, data: SubAreaUpdate) -> SubArea:
        sub_area = self.get_sub_area(sub_area_id)
        if data.areaId is not None and data.areaId != sub_area.area_id:
            self.get_area(data.areaId)
            # Branches follow their sub-area into the new area
            for branch in sub_area.branches:
                branch.area_id = data.areaId

        return self.repo.update(
            self.db,
            sub_area,
            name=data.name,
            code=data.code,
            description=data.description,
            active=data.active,
            area_id=data.areaId,
        )

    def set_sub_area_active(self, sub_area_id: int, active: bool) -> SubArea:
        sub_area = self.get_sub_area(sub_area_id)
        sub_area.active = active
        self.db.commit()
        self.db.refresh(sub_area)
        return sub_area

    def delete_sub_area(self, sub_area_id: int) -> dict:
        sub_area = self.get_sub_area(sub_area_id)
        if self.repo.count_sub_area_children(self.db, sub_area_id):
            raise HTTPException(status_code=409, detail="Sub-area still has branches; remove them first")
        self.repo.delete_assignments_for(self.db, sub_area_id=sub_area_id)
        self.repo.delete(self.db, sub_area)
        logger.info(f"🗑️ Deleted sub-area {sub_area_id}")
        return {"message": "Sub-area deleted"}

    # ------------------------------------------------------------------
    # Branches
    # ------------------------------------------------------------------

    def get_branches(
        self,
        area_id: Optional[int] = None,
        sub_area_id: Optional[int] = None,
        active_only: bool = False,
    ) -> list[Branch]:
        return self.repo.get_branches(self.db, area_id, sub_area_id, active_only)

    def get_branch(self, branch_id: int) -> Branch:
        branch = self.repo.get_branch_by_id(self.db, branch_id)
        if not branch:
            raise HTTPException(status_code=404, detail=f"Branch not found with id: {branch_id}")
        return branch

    def search_branches(self, name: str) -> list[Branch]:
        return self.repo.search_branches(self.db, name)

    def _resolve_branch_parents(
        self, area_id: Optional[int], sub_area_id: Optional[int]
    ) -> tuple[int, Optional[int]]:
        """The sub-area decides the area; an explicit area must agree with it"""
        if sub_area_id is not None:
            sub_area = self.get_sub_area(sub_area_id)
            if area_id is not None and area_id != sub_area.area_id:
                raise HTTPException(
                    status_code=400,
                    detail=f"Sub-area {sub_area_id} does not belong to area {area_id}",
                )
            return sub_area.area_id, sub_area.id
        if area_id is None:
            raise HTTPException(status_code=400, detail="Either areaId or subareaId is required")
        self.get_area(area_id)
        return area_id, None

    def create_branch(self, data: BranchCreate) -> Branch:
        area_id, sub_area_id = self._resolve_branch_parents(data.areaId, data.subareaId)
        branch = Branch(
            name=data.name,
            code=data.code,
            description=data.description,
            address=data.address,
            phone=data.phone,
            email=data.email,
            active=data.active,
            area_id=area_id,
            sub_area_id=sub_area_id,
        )
        branch = self.repo.create(self.db, branch)
        logger.info(f"✅ Created branch {branch.id} ({branch.name})")
        return branch

    def update_branch(self, branch_id: int, data: BranchUpdate) -> Branch:
        branch = self.get_branch(branch_id)
        area_id = sub_area_id = None
        if data.subareaId is not None or data.areaId is not None:
            area_id, sub_area_id = self._resolve_branch_parents(data.areaId, data.subareaId)
            if sub_area_id is None:
                # Moved directly under an area
                branch.sub_area_id = None

        return self.repo.update(
            self.db,
            branch,
            name=data.name,
            code=data.code,
            description=data.description,
            address=data.address,
            phone=data.phone,
            email=data.email,
            active=data.active,
            area_id=area_id,
            sub_area_id=sub_area_id,
        )

    def set_branch_active(self, branch_id: int, active: bool) -> Branch:
        branch = self.get_branch(branch_id)
        branch.active = active
        self.db.commit()
        self.db.refresh(branch)
        return branch

    def delete_branch(self, branch_id: int) -> dict:
        branch = self.get_branch(branch_id)
        if self.repo.count_branch_references(self.db, branch_id):
            raise HTTPException(
                status_code=409,
                detail="Branch is referenced by call reports or VIP members; deactivate it instead",
            )
        self.repo.delete_assignments_for(self.db, branch_id=branch_id)
        self.repo.delete(self.db, branch)
        logger.info(f"🗑️ Deleted branch {branch_id}")
        return {"message": "Branch deleted"}

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def build_selection(self, data: SelectionRequest) -> HierarchySelection:
        """Resolve a posted filter selection against the stored hierarchy"""
        areas = self.repo.get_areas(self.db, data.activeOnly)
        sub_areas = self.repo.get_sub_areas(self.db, active_only=data.activeOnly)
        branches = self.repo.get_branches(self.db, active_only=data.activeOnly)
        return HierarchySelection(
            areas=[AreaNode(id=a.id, name=a.name) for a in areas],
            sub_areas=[SubAreaNode(id=s.id, name=s.name, area_id=s.area_id) for s in sub_areas],
            branches=[
                BranchNode(id=b.id, name=b.name, area_id=b.area_id, sub_area_id=b.sub_area_id)
                for b in branches
            ],
            area_ids=data.areaIds,
            sub_area_ids=data.subAreaIds,
            branch_ids=data.branchIds,
        )
