"""Shared fixtures: in-memory database, fake gateway, temporary uploads and auth helpers."""
import os
import tempfile

# Settings are read at import time
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="admissions-uploads-")
os.environ["MAIL_SERVER"] = ""
os.environ.pop("RAZORPAY_KEY_ID", None)
os.environ.pop("RAZORPAY_KEY_SECRET", None)

import hashlib
import hmac

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import app.database.models  # noqa: F401
from app.database.config.db import Base, get_db
from app.database.models.auth import Admin
from app.main import app
from app.services.gateway import RazorpayGateway, get_gateway
from app.services.storage import LocalFileStorage, get_storage
from app.utils.auth import get_password_hash
from app.workflow.states import AdminRole

GATEWAY_KEY_ID = "rzp_test_key"
GATEWAY_SECRET = "rzp_test_secret"
ADMIN_PASSWORD = "Admin@12345"
STUDENT_PASSWORD = "Student@123"

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
PDF_BYTES = b"%PDF-1.4\n%test document\n"
JPG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 64

PROFILE_FORM = {
    "full_name": "Asha Verma",
    "phone": "9876543210",
    "date_of_birth": "2004-05-17",
    "gender": "female",
    "address": "12 MG Road, Pune",
    "qualification": "12th",
    "institution": "CBSE",
    "passing_year": "2022",
    "percentage": "88.5",
    "program_type": "UG",
    "course_name": "BSc Computer Science",
}


def document_files():
    return {
        "photo": ("photo.png", PNG_BYTES, "image/png"),
        "id_proof": ("aadhaar.pdf", PDF_BYTES, "application/pdf"),
        "certificate": ("marksheet.jpg", JPG_BYTES, "image/jpeg"),
    }


def sign(order_ref: str, payment_ref: str, secret: str = GATEWAY_SECRET) -> str:
    return hmac.new(secret.encode(), f"{order_ref}|{payment_ref}".encode(), hashlib.sha256).hexdigest()


class FakeGateway(RazorpayGateway):
    """Gateway that creates orders locally; signature checks use the real HMAC."""

    def __init__(self):
        super().__init__(GATEWAY_KEY_ID, GATEWAY_SECRET)
        self.orders = []

    def create_order(self, amount, currency, receipt, notes):
        order = {"id": f"order_test_{len(self.orders) + 1}", "amount": amount * 100, "currency": currency, "receipt": receipt, "notes": notes}
        self.orders.append(order)
        return order


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def gateway():
    return FakeGateway()


@pytest.fixture()
def storage(tmp_path):
    return LocalFileStorage(root=str(tmp_path / "applications"))


@pytest.fixture()
def client(session_factory, gateway, storage):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_storage] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


# ---------- Auth helpers ----------

def register_student(client, email="asha@example.com", name="Asha Verma"):
    response = client.post(
        "/api/v1/student/auth/register",
        json={
            "name": name,
            "email": email,
            "password": STUDENT_PASSWORD,
            "confirm_password": STUDENT_PASSWORD,
        },
    )
    assert response.status_code == 201, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


def create_admin(db, username="reviewer", email="reviewer@example.com", role=AdminRole.ADMIN, name="Priya Nair"):
    admin = Admin(
        username=username,
        email=email,
        name=name,
        password_hash=get_password_hash(ADMIN_PASSWORD),
        role=role,
    )
    db.add(admin)
    db.commit()
    db.refresh(admin)
    return admin


def login_admin(client, username="reviewer"):
    response = client.post(
        "/api/v1/admin/auth/login",
        json={"username": username, "password": ADMIN_PASSWORD},
    )
    assert response.status_code == 200, response.text
    return {"Authorization": f"Bearer {response.json()['token']}"}


def submit_application(client, headers, form=None, files=None):
    return client.post(
        "/api/v1/student/application/submit",
        data=form if form is not None else PROFILE_FORM,
        files=files if files is not None else document_files(),
        headers=headers,
    )


@pytest.fixture()
def student_headers(client):
    return register_student(client)


@pytest.fixture()
def admin_headers(client, db_session):
    create_admin(db_session)
    return login_admin(client)


@pytest.fixture()
def superadmin_headers(client, db_session):
    create_admin(db_session, username="root", email="root@example.com", role=AdminRole.SUPERADMIN, name="Root")
    return login_admin(client, "root")
