import uuid
from sqlalchemy import Column, String, Boolean, DateTime, Integer, Uuid, Enum as SQLEnum
from sqlalchemy.sql import func

from app.database.config.db import Base, enum_values
from app.workflow.states import AdminRole


class Student(Base):
    """Applicant login account."""
    __tablename__ = "students"

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    name = Column(String(150), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    phone = Column(String(20), nullable=True)
    password_hash = Column(String, nullable=False)
    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class Admin(Base):
    """Staff account with lock-out tracking."""
    __tablename__ = "admins"

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    username = Column(String(100), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    name = Column(String(150), nullable=True)
    password_hash = Column(String, nullable=False)
    role = Column(
        SQLEnum(AdminRole, name="admin_role", values_callable=enum_values),
        nullable=False,
        default=AdminRole.ADMIN,
        index=True,
    )
    is_active = Column(Boolean, default=True, nullable=False)

    # ==================== LOCK-OUT ====================
    failed_login_attempts = Column(Integer, default=0, nullable=False)
    lock_until = Column(DateTime(timezone=True), nullable=True)

    last_login_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
