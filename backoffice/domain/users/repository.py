"""User repository - Database operations for users, permissions and assignments"""

from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from ...models import User, UserAssignment, UserPermission


class UserRepository:
    """Repository for user database operations"""

    @staticmethod
    def get_users(db: Session) -> list[User]:
        return db.query(User).options(joinedload(User.permissions)).order_by(User.username).all()

    @staticmethod
    def get_user_by_id(db: Session, user_id: int) -> Optional[User]:
        return db.query(User).filter(User.id == user_id).first()

    @staticmethod
    def get_user_by_username(db: Session, username: str) -> Optional[User]:
        return db.query(User).filter(func.lower(User.username) == username.lower()).first()

    @staticmethod
    def create_user(db: Session, user: User) -> User:
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def update_user(db: Session, user: User, **updates) -> User:
        for key, value in updates.items():
            if value is not None and hasattr(user, key):
                setattr(user, key, value)
        db.commit()
        db.refresh(user)
        return user

    @staticmethod
    def delete_user(db: Session, user: User) -> None:
        db.delete(user)
        db.commit()

    # Permissions
    @staticmethod
    def get_permission_codes(db: Session, user_id: int) -> list[str]:
        rows = (
            db.query(UserPermission.code)
            .filter(UserPermission.user_id == user_id)
            .order_by(UserPermission.code)
            .all()
        )
        return [code for (code,) in rows]

    @staticmethod
    def replace_permissions(db: Session, user_id: int, codes: list[str]) -> None:
        db.query(UserPermission).filter(UserPermission.user_id == user_id).delete(synchronize_session=False)
        for code in codes:
            db.add(UserPermission(user_id=user_id, code=code))
        db.commit()

    # Assignments
    @staticmethod
    def get_assignments(db: Session, user_id: int, include_inactive: bool = False) -> list[UserAssignment]:
        query = (
            db.query(UserAssignment)
            .options(
                joinedload(UserAssignment.area),
                joinedload(UserAssignment.sub_area),
                joinedload(UserAssignment.branch),
            )
            .filter(UserAssignment.user_id == user_id)
        )
        if not include_inactive:
            query = query.filter(UserAssignment.active.is_(True))
        return query.order_by(UserAssignment.id).all()

    @staticmethod
    def get_assignment_by_id(db: Session, assignment_id: int) -> Optional[UserAssignment]:
        return db.query(UserAssignment).filter(UserAssignment.id == assignment_id).first()

    @staticmethod
    def find_assignment(
        db: Session,
        user_id: int,
        area_id: Optional[int] = None,
        sub_area_id: Optional[int] = None,
        branch_id: Optional[int] = None,
    ) -> Optional[UserAssignment]:
        """Assignment of a user to exactly this node, active or not"""
        return (
            db.query(UserAssignment)
            .filter(
                UserAssignment.user_id == user_id,
                UserAssignment.area_id.is_(None) if area_id is None else UserAssignment.area_id == area_id,
                UserAssignment.sub_area_id.is_(None)
                if sub_area_id is None
                else UserAssignment.sub_area_id == sub_area_id,
                UserAssignment.branch_id.is_(None) if branch_id is None else UserAssignment.branch_id == branch_id,
            )
            .first()
        )

    @staticmethod
    def save_assignment(db: Session, assignment: UserAssignment) -> UserAssignment:
        db.add(assignment)
        db.commit()
        db.refresh(assignment)
        return assignment
