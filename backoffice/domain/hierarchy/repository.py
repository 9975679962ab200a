"""Hierarchy repository - Database operations for areas, sub-areas and branches"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import Area, Branch, CallReport, SubArea, UserAssignment, VipMember


class HierarchyRepository:
    """Repository for area / sub-area / branch database operations"""

    # Areas
    @staticmethod
    def get_areas(db: Session, active_only: bool = False) -> list[Area]:
        query = db.query(Area)
        if active_only:
            query = query.filter(Area.active.is_(True))
        return query.order_by(Area.name).all()

    @staticmethod
    def get_area_by_id(db: Session, area_id: int) -> Optional[Area]:
        return db.query(Area).filter(Area.id == area_id).first()

    @staticmethod
    def get_area_by_name(db: Session, name: str) -> Optional[Area]:
        return db.query(Area).filter(func.lower(Area.name) == name.lower()).first()

    @staticmethod
    def search_areas(db: Session, name: str) -> list[Area]:
        return (
            db.query(Area)
            .filter(Area.name.icontains(name.strip(), autoescape=True))
            .order_by(Area.name)
            .all()
        )

    # Sub-areas
    @staticmethod
    def get_sub_areas(
        db: Session, area_id: Optional[int] = None, active_only: bool = False
    ) -> list[SubArea]:
        query = db.query(SubArea).options(joinedload(SubArea.area))
        if area_id is not None:
            query = query.filter(SubArea.area_id == area_id)
        if active_only:
            query = query.filter(SubArea.active.is_(True))
        return query.order_by(SubArea.name).all()

    @staticmethod
    def get_sub_area_by_id(db: Session, sub_area_id: int) -> Optional[SubArea]:
        return (
            db.query(SubArea)
            .options(joinedload(SubArea.area))
            .filter(SubArea.id == sub_area_id)
            .first()
        )

    @staticmethod
    def search_sub_areas(db: Session, name: str, area_id: Optional[int] = None) -> list[SubArea]:
        query = db.query(SubArea).filter(SubArea.name.icontains(name.strip(), autoescape=True))
        if area_id is not None:
            query = query.filter(SubArea.area_id == area_id)
        return query.order_by(SubArea.name).all()

    # Branches
    @staticmethod
    def get_branches(
        db: Session,
        area_id: Optional[int] = None,
        sub_area_id: Optional[int] = None,
        active_only: bool = False,
    ) -> list[Branch]:
        query = db.query(Branch).options(joinedload(Branch.area), joinedload(Branch.sub_area))
        if area_id is not None:
            query = query.filter(Branch.area_id == area_id)
        if sub_area_id is not None:
            query = query.filter(Branch.sub_area_id == sub_area_id)
        if active_only:
            query = query.filter(Branch.active.is_(True))
        return query.order_by(Branch.name).all()

    @staticmethod
    def get_branch_by_id(db: Session, branch_id: int) -> Optional[Branch]:
        return (
            db.query(Branch)
            .options(joinedload(Branch.area), joinedload(Branch.sub_area))
            .filter(Branch.id == branch_id)
            .first()
        )

    @staticmethod
    def search_branches(db: Session, name: str) -> list[Branch]:
        return (
            db.query(Branch)
            .filter(Branch.name.icontains(name.strip(), autoescape=True))
            .order_by(Branch.name)
            .all()
        )

    # Dependants
    @staticmethod
    def count_area_children(db: Session, area_id: int) -> int:
        sub_areas = db.query(func.count(SubArea.id)).filter(SubArea.area_id == area_id).scalar()
        branches = db.query(func.count(Branch.id)).filter(Branch.area_id == area_id).scalar()
        return (sub_areas or 0) + (branches or 0)

    @staticmethod
    def count_sub_area_children(db: Session, sub_area_id: int) -> int:
        return db.query(func.count(Branch.id)).filter(Branch.sub_area_id == sub_area_id).scalar() or 0

    @staticmethod
    def count_branch_references(db: Session, branch_id: int) -> int:
        reports = db.query(func.count(CallReport.id)).filter(CallReport.branch_id == branch_id).scalar()
        members = db.query(func.count(VipMember.id)).filter(VipMember.branch_id == branch_id).scalar()
        return (reports or 0) + (members or 0)

    @staticmethod
    def delete_assignments_for(
        db: Session,
        area_id: Optional[int] = None,
        sub_area_id: Optional[int] = None,
        branch_id: Optional[int] = None,
    ) -> None:
        query = db.query(UserAssignment)
        if area_id is not None:
            query = query.filter(UserAssignment.area_id == area_id)
        if sub_area_id is not None:
            query = query.filter(UserAssignment.sub_area_id == sub_area_id)
        if branch_id is not None:
            query = query.filter(UserAssignment.branch_id == branch_id)
        query.delete(synchronize_session=False)

    # Generic persistence
    @staticmethod
    def create(db: Session, entity):
        db.add(entity)
        db.commit()
        db.refresh(entity)
        return entity

    @staticmethod
    def update(db: Session, entity, **updates):
        """Update an entity with provided fields"""
        for key, value in updates.items():
            if value is not None and hasattr(entity, key):
                setattr(entity, key, value)

        db.commit()
        db.refresh(entity)
        return entity

    @staticmethod
    def delete(db: Session, entity) -> None:
        db.delete(entity)
        db.commit()
