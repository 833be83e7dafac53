import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID
from jose import JWTError, jwt
from passlib.context import CryptContext
from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from app.database.config.db import get_db
from app.database.models.auth import Student, Admin
from app.settings import (
    JWT_SECRET_KEY,
    JWT_ALGORITHM,
    STUDENT_TOKEN_EXPIRE_MINUTES,
    ADMIN_TOKEN_EXPIRE_MINUTES,
    ADMIN_MAX_LOGIN_ATTEMPTS,
    ADMIN_LOCK_MINUTES,
)
from app.workflow.states import Actor, ActorKind, AdminRole

logger = logging.getLogger(__name__)

# Password hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# OAuth2 schemes
student_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/student/auth/login")
admin_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="api/v1/admin/auth/login")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against a hash."""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password."""
    return pwd_context.hash(password)


def create_access_token(
    subject: str, kind: ActorKind, expires_delta: Optional[timedelta] = None
) -> str:
    """Create a JWT access token for a student or an admin."""
    if expires_delta is None:
        minutes = (
            STUDENT_TOKEN_EXPIRE_MINUTES if kind == ActorKind.STUDENT else ADMIN_TOKEN_EXPIRE_MINUTES
        )
        expires_delta = timedelta(minutes=minutes)

    to_encode = {"sub": subject, "kind": kind.value, "exp": utc_now() + expires_delta}
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """Decode and verify a JWT token."""
    try:
        return jwt.decode(token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError:
        return None


def _credentials_exception() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def _subject_for(token: str, kind: ActorKind) -> str:
    payload = decode_access_token(token)
    if payload is None or payload.get("kind") != kind.value:
        raise _credentials_exception()
    subject = payload.get("sub")
    if subject is None:
        raise _credentials_exception()
    return subject


def _as_uuid(subject: str) -> UUID:
    try:
        return UUID(subject)
    except ValueError:
        raise _credentials_exception()


# ==================== ADMIN LOCK-OUT ====================

def is_admin_locked(admin: Admin, now: datetime) -> bool:
    lock_until = as_utc(admin.lock_until)
    return lock_until is not None and lock_until > now


def lock_minutes_remaining(admin: Admin, now: datetime) -> int:
    lock_until = as_utc(admin.lock_until)
    if lock_until is None or lock_until <= now:
        return 0
    return math.ceil((lock_until - now).total_seconds() / 60)


def register_failed_login(admin: Admin, now: datetime) -> int:
    """
    Count a wrong password and lock the account once the threshold is reached.

    Returns the number of attempts left before the lock.
    """
    lock_until = as_utc(admin.lock_until)
    if lock_until is not None and lock_until <= now:
        # Previous lock has expired; start a fresh window
        admin.failed_login_attempts = 0
        admin.lock_until = None

    admin.failed_login_attempts = (admin.failed_login_attempts or 0) + 1
    if admin.failed_login_attempts >= ADMIN_MAX_LOGIN_ATTEMPTS:
        admin.lock_until = now + timedelta(minutes=ADMIN_LOCK_MINUTES)
        logger.warning("Admin %s locked until %s", admin.username, admin.lock_until)
    return max(ADMIN_MAX_LOGIN_ATTEMPTS - admin.failed_login_attempts, 0)


def reset_login_attempts(admin: Admin, now: datetime) -> None:
    admin.failed_login_attempts = 0
    admin.lock_until = None
    admin.last_login_at = now


# ==================== DEPENDENCIES ====================

def get_current_student(
    token: str = Depends(student_oauth2_scheme),
    db: Session = Depends(get_db),
) -> Student:
    """
    Get the current authenticated student from the JWT token.
    """
    subject = _subject_for(token, ActorKind.STUDENT)
    student = db.query(Student).filter(Student.id == _as_uuid(subject)).first()
    if student is None:
        raise _credentials_exception()
    return student


def get_current_admin(
    token: str = Depends(admin_oauth2_scheme),
    db: Session = Depends(get_db),
) -> Admin:
    """
    Get the current authenticated admin. Inactive accounts are refused.
    """
    subject = _subject_for(token, ActorKind.ADMIN)
    admin = db.query(Admin).filter(Admin.id == _as_uuid(subject)).first()
    if admin is None:
        raise _credentials_exception()

    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin account is inactive",
        )
    return admin


def require_superadmin(
    admin: Admin = Depends(get_current_admin),
) -> Admin:
    """
    Dependency to require the superadmin role.
    Usage: admin: Admin = Depends(require_superadmin)
    """
    if admin.role != AdminRole.SUPERADMIN:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied. Superadmin role required.",
        )
    return admin


def student_actor(student: Student) -> Actor:
    return Actor(kind=ActorKind.STUDENT, id=student.id, email=student.email, name=student.name)


def admin_actor(admin: Admin) -> Actor:
    return Actor(
        kind=ActorKind.ADMIN,
        id=admin.id,
        email=admin.email,
        name=admin.name or admin.username,
        role=admin.role,
    )


def get_student_actor(student: Student = Depends(get_current_student)) -> Actor:
    return student_actor(student)


def get_admin_actor(admin: Admin = Depends(get_current_admin)) -> Actor:
    return admin_actor(admin)
