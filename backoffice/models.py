from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from .database import Base


class Area(Base):
    __tablename__ = "areas"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), unique=True, nullable=False)
    code = Column(String(40), nullable=True)
    description = Column(Text, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

    sub_areas = relationship("SubArea", back_populates="area")
    branches = relationship("Branch", back_populates="area")


class SubArea(Base):
    __tablename__ = "sub_areas"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    code = Column(String(40), nullable=True)
    description = Column(Text, nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    area_id = Column(Integer, ForeignKey("areas.id"), nullable=False, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

    area = relationship("Area", back_populates="sub_areas")
    branches = relationship("Branch", back_populates="sub_area")


class Branch(Base):
    __tablename__ = "branches"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    code = Column(String(40), nullable=True)
    description = Column(Text, nullable=True)
    address = Column(String(255), nullable=True)
    phone = Column(String(40), nullable=True)
    email = Column(String(255), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    area_id = Column(Integer, ForeignKey("areas.id"), nullable=False, index=True)
    # Branches may hang directly off an area without a sub-area
    sub_area_id = Column(Integer, ForeignKey("sub_areas.id"), nullable=True, index=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

    area = relationship("Area", back_populates="branches")
    sub_area = relationship("SubArea", back_populates="branches")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(80), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    permissions = relationship(
        "UserPermission", back_populates="user", cascade="all, delete-orphan"
    )
    assignments = relationship(
        "UserAssignment", back_populates="user", cascade="all, delete-orphan"
    )


class UserPermission(Base):
    __tablename__ = "user_permissions"
    __table_args__ = (UniqueConstraint("user_id", "code", name="uq_user_permission"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    code = Column(String(100), nullable=False)

    user = relationship("User", back_populates="permissions")


class UserAssignment(Base):
    """Scopes a user to exactly one of an area, a sub-area or a branch"""

    __tablename__ = "user_assignments"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    area_id = Column(Integer, ForeignKey("areas.id"), nullable=True)
    sub_area_id = Column(Integer, ForeignKey("sub_areas.id"), nullable=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    user = relationship("User", back_populates="assignments")
    area = relationship("Area")
    sub_area = relationship("SubArea")
    branch = relationship("Branch")

    @property
    def level(self) -> str:
        if self.branch_id is not None:
            return "branch"
        if self.sub_area_id is not None:
            return "subarea"
        return "area"


class CallStatus(Base):
    __tablename__ = "call_statuses"

    id = Column(Integer, primary_key=True, index=True)
    key = Column(String(80), unique=True, index=True, nullable=False)
    label = Column(String(120), nullable=False)
    created_by = Column(String(80), nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)


class CallReport(Base):
    __tablename__ = "call_reports"

    id = Column(Integer, primary_key=True, index=True)
    called_at = Column(Date, nullable=False, index=True)
    arrived_at = Column(Date, nullable=True)
    call_type = Column(String(20), default="new-call", nullable=False)  # new-call, recall
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    created_by = Column(String(80), nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    remark = Column(Text, nullable=True)

    branch = relationship("Branch")
    entries = relationship(
        "CallReportEntry",
        back_populates="report",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def entries_as_map(self) -> dict[str, int]:
        return {entry.status_key: entry.status_value for entry in self.entries}

    def remarks_as_map(self) -> dict[str, str]:
        return {entry.status_key: entry.remark for entry in self.entries if entry.remark}


class CallReportEntry(Base):
    __tablename__ = "call_report_entries"
    __table_args__ = (UniqueConstraint("report_id", "status_key", name="uq_report_status"),)

    id = Column(Integer, primary_key=True, index=True)
    report_id = Column(Integer, ForeignKey("call_reports.id", ondelete="CASCADE"), nullable=False)
    status_key = Column(String(80), nullable=False)
    status_value = Column(Integer, default=0, nullable=False)
    remark = Column(Text, nullable=True)

    report = relationship("CallReport", back_populates="entries")


class VipMember(Base):
    __tablename__ = "vip_members"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    phone = Column(String(40), unique=True, index=True, nullable=False)  # whitespace stripped
    member_created_at = Column(Date, nullable=False)
    member_deleted_at = Column(Date, nullable=True)
    create_remark = Column(String(500), nullable=True)
    delete_remark = Column(String(500), nullable=True)
    branch_id = Column(Integer, ForeignKey("branches.id"), nullable=True, index=True)
    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, onupdate=func.now(), nullable=True)

    branch = relationship("Branch")
    shipments = relationship("GoodsShipment", back_populates="member", cascade="all, delete-orphan")


class GoodsShipment(Base):
    __tablename__ = "goods_shipments"
    __table_args__ = (UniqueConstraint("member_id", "send_date", name="uq_member_send_date"),)

    id = Column(Integer, primary_key=True, index=True)
    member_id = Column(Integer, ForeignKey("vip_members.id", ondelete="CASCADE"), nullable=False, index=True)
    send_date = Column(Date, nullable=False, index=True)
    total_goods = Column(Integer, default=0, nullable=False)
    created_by = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)

    member = relationship("VipMember", back_populates="shipments")
