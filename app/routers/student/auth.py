import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from app.database.config.db import get_db
from app.database.models.auth import Student
from app.schema.student.auth import (
    StudentRegisterRequest,
    StudentLoginRequest,
    StudentLoginResponse,
    StudentUpdatePasswordRequest,
    StudentMeResponse,
)
from app.utils.auth import (
    verify_password,
    get_password_hash,
    create_access_token,
    get_current_student,
    utc_now,
)
from app.workflow.states import ActorKind

logger = logging.getLogger(__name__)

student_auth_router = APIRouter(prefix="/auth", tags=["Student - Auth"])


def _login_response(student: Student) -> StudentLoginResponse:
    return StudentLoginResponse(
        student_id=student.id,
        token=create_access_token(str(student.id), ActorKind.STUDENT),
        name=student.name,
        email=student.email,
        last_login=student.last_login_at,
    )


@student_auth_router.post(
    "/register", response_model=StudentLoginResponse, status_code=status.HTTP_201_CREATED
)
def student_register(
    body: StudentRegisterRequest,
    db: Session = Depends(get_db),
):
    """
    Create a student account and log it in.
    """
    email = body.email.strip().lower()
    if db.query(Student).filter(Student.email == email).first():
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="An account with this email already exists",
        )

    student = Student(
        name=body.name.strip(),
        email=email,
        phone=body.phone.strip() if body.phone else None,
        password_hash=get_password_hash(body.password),
        last_login_at=utc_now(),
    )
    db.add(student)
    db.commit()
    db.refresh(student)
    logger.info("Student %s registered", student.id)

    return _login_response(student)


@student_auth_router.post("/login", response_model=StudentLoginResponse)
def student_login(
    body: StudentLoginRequest,
    db: Session = Depends(get_db),
):
    """
    Student login via email and password.
    """
    student = db.query(Student).filter(Student.email == body.email.strip().lower()).first()
    if not student or not verify_password(body.password, student.password_hash):
        logger.info("Failed student login for %s", body.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    student.last_login_at = utc_now()
    db.commit()
    db.refresh(student)

    return _login_response(student)


@student_auth_router.get("/me", response_model=StudentMeResponse)
def get_current_student_me(
    student: Student = Depends(get_current_student),
):
    return student


@student_auth_router.put("/password", status_code=status.HTTP_204_NO_CONTENT)
def update_password(
    body: StudentUpdatePasswordRequest,
    student: Student = Depends(get_current_student),
    db: Session = Depends(get_db),
):
    """
    Update the authenticated student's password. Requires the current password.
    """
    if not verify_password(body.current_password, student.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect",
        )
    student.password_hash = get_password_hash(body.new_password)
    db.commit()
