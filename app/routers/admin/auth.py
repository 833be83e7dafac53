import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import or_
from sqlalchemy.orm import Session

from app.database.config.db import get_db
from app.database.models.auth import Admin
from app.schema.admin.auth import (
    AdminCreateRequest,
    AdminLoginRequest,
    AdminLoginResponse,
    AdminMeResponse,
    AdminMeUpdateRequest,
    AdminUpdatePasswordRequest,
)
from app.utils.auth import (
    verify_password,
    get_password_hash,
    create_access_token,
    get_current_admin,
    require_superadmin,
    is_admin_locked,
    lock_minutes_remaining,
    register_failed_login,
    reset_login_attempts,
    utc_now,
)
from app.workflow.states import ActorKind

logger = logging.getLogger(__name__)

admin_auth_router = APIRouter(prefix="/auth", tags=["Admin - Auth"])

# Remaining attempts are reported once this few are left
WARN_REMAINING_ATTEMPTS = 3


def _locked_exception(admin: Admin, now) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_423_LOCKED,
        detail=f"Account is locked. Try again in {lock_minutes_remaining(admin, now)} minutes.",
    )


@admin_auth_router.post("/login", response_model=AdminLoginResponse)
def admin_login(
    body: AdminLoginRequest,
    db: Session = Depends(get_db),
):
    """
    Admin login by username or email.

    Five wrong passwords lock the account for two hours; a locked account is
    refused even with the correct password until the lock expires.
    """
    identifier = body.username.strip()
    admin = (
        db.query(Admin)
        .filter(or_(Admin.username == identifier, Admin.email == identifier.lower()))
        .first()
    )
    if not admin:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password",
        )

    now = utc_now()
    if is_admin_locked(admin, now):
        raise _locked_exception(admin, now)

    if not admin.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin account is inactive",
        )

    if not verify_password(body.password, admin.password_hash):
        remaining = register_failed_login(admin, now)
        db.commit()
        logger.info("Failed admin login for %s (%d attempts left)", admin.username, remaining)

        if is_admin_locked(admin, now):
            raise _locked_exception(admin, now)
        detail = "Invalid username or password"
        if remaining <= WARN_REMAINING_ATTEMPTS:
            detail += f". {remaining} attempt{'s' if remaining != 1 else ''} remaining"
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)

    reset_login_attempts(admin, now)
    db.commit()
    db.refresh(admin)

    return AdminLoginResponse(
        admin_id=admin.id,
        token=create_access_token(str(admin.id), ActorKind.ADMIN),
        role=admin.role,
        name=admin.name,
        last_login=admin.last_login_at,
    )


@admin_auth_router.get("/me", response_model=AdminMeResponse)
def get_current_admin_me(
    admin: Admin = Depends(get_current_admin),
):
    return admin


@admin_auth_router.patch("/me", response_model=AdminMeResponse)
def update_current_admin_me(
    body: AdminMeUpdateRequest,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    Update the authenticated admin's name and/or email.
    """
    update_data = body.model_dump(exclude_unset=True, exclude_none=True)
    if "email" in update_data:
        update_data["email"] = update_data["email"].strip().lower()
        taken = (
            db.query(Admin)
            .filter(Admin.email == update_data["email"], Admin.id != admin.id)
            .first()
        )
        if taken:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail="Email is already used by another admin",
            )

    for key, value in update_data.items():
        setattr(admin, key, value)

    db.commit()
    db.refresh(admin)
    return admin


@admin_auth_router.put("/password", status_code=status.HTTP_204_NO_CONTENT)
def update_password(
    body: AdminUpdatePasswordRequest,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    Update the authenticated admin's password. Requires the current password.
    """
    if not verify_password(body.current_password, admin.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )

    admin.password_hash = get_password_hash(body.new_password)
    db.commit()


@admin_auth_router.post(
    "/admins", response_model=AdminMeResponse, status_code=status.HTTP_201_CREATED
)
def create_admin(
    body: AdminCreateRequest,
    superadmin: Admin = Depends(require_superadmin),
    db: Session = Depends(get_db),
):
    """
    Create another admin account. Superadmin only.
    """
    email = body.email.strip().lower()
    existing = (
        db.query(Admin)
        .filter(or_(Admin.username == body.username.strip(), Admin.email == email))
        .first()
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An admin with this username or email already exists",
        )

    admin = Admin(
        username=body.username.strip(),
        email=email,
        name=body.name,
        password_hash=get_password_hash(body.password),
        role=body.role,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("Admin %s created by %s", admin.username, superadmin.username)
    return admin
