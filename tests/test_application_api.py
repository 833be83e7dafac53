"""
API tests for the student application flow: drafts, submission and payments
"""
import os
import re
from datetime import datetime

from app.services.gateway import RazorpayGateway, get_gateway
from app.services.stores import ApplicantStore
from app.main import app
from tests.conftest import PNG_BYTES, PROFILE_FORM, document_files, register_student, sign, submit_application

BASE = "/api/v1/student/application"


def status_of(client, headers):
    response = client.get(f"{BASE}/status", headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


class TestDrafts:
    def test_new_student_starts_at_step_one(self, client, student_headers):
        response = client.get(f"{BASE}/check-status", headers=student_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "new"
        assert response.json()["current_step"] == 1

    def test_save_and_resume_draft(self, client, student_headers):
        response = client.post(
            f"{BASE}/draft",
            json={"full_name": "Asha Verma", "course_name": "BCA", "step": 3},
            headers=student_headers,
        )
        assert response.status_code == 200
        assert response.json()["application_id"] is None
        assert response.json()["current_step"] == 3

        client.post(f"{BASE}/draft", json={"full_name": "", "address": "Pune", "step": 4}, headers=student_headers)

        draft = client.get(f"{BASE}/draft", headers=student_headers).json()["draft"]
        assert draft["full_name"] == "Asha Verma"
        assert draft["address"] == "Pune"
        assert draft["current_step"] == 4

        view = client.get(f"{BASE}/check-status", headers=student_headers).json()
        assert view["status"] == "draft"
        assert view["current_step"] == 4

    def test_clear_drafts(self, client, student_headers):
        client.post(f"{BASE}/draft", json={"full_name": "Asha", "step": 2}, headers=student_headers)
        response = client.delete(f"{BASE}/draft", headers=student_headers)
        assert response.status_code == 200
        assert response.json()["deleted"] == 1
        assert client.get(f"{BASE}/draft", headers=student_headers).json()["draft"] is None

    def test_requires_student_login(self, client):
        assert client.get(f"{BASE}/draft").status_code == 401


class TestSubmission:
    def test_submit_assigns_application_id(self, client, student_headers):
        response = submit_application(client, student_headers)
        assert response.status_code == 201, response.text
        body = response.json()
        assert re.match(rf"^SU{datetime.now().year}\d{{5}}$", body["application_id"])
        assert body["is_draft"] is False
        assert body["status"] == "submitted"
        assert body["current_step"] == 5
        assert body["photo_ref"].startswith("/uploads/applications/")

        view = client.get(f"{BASE}/check-status", headers=student_headers).json()
        assert view["redirect_to"] == "payment"

    def test_missing_fields_are_listed_and_nothing_changes(self, client, student_headers):
        client.post(f"{BASE}/draft", json={"full_name": "Asha Verma", "step": 2}, headers=student_headers)

        response = submit_application(client, student_headers, form={"course_name": "BCA"}, files={})
        assert response.status_code == 400
        errors = response.json()["errors"]
        assert "phone is required" in errors
        assert "photo_ref is required" in errors
        assert "full_name is required" not in errors

        draft = client.get(f"{BASE}/draft", headers=student_headers).json()["draft"]
        assert draft["is_draft"] is True
        assert draft["application_id"] is None
        assert draft["course_name"] is None

    def test_rejected_upload_type(self, client, student_headers):
        files = document_files()
        files["photo"] = ("photo.gif", b"GIF89a", "image/gif")
        response = submit_application(client, student_headers, files=files)
        assert response.status_code == 400
        assert "only PNG, JPG and PDF" in response.json()["detail"]

    def test_oversized_document(self, client, student_headers):
        files = document_files()
        files["photo"] = ("photo.png", PNG_BYTES + b"\x00" * (2 * 1024 * 1024), "image/png")
        response = submit_application(client, student_headers, files=files)
        assert response.status_code == 400

    def test_second_submission_conflicts(self, client, student_headers):
        assert submit_application(client, student_headers).status_code == 201
        assert submit_application(client, student_headers).status_code == 409

    def test_sequential_ids_across_students(self, client):
        first = submit_application(client, register_student(client, "a@example.com")).json()
        second = submit_application(client, register_student(client, "b@example.com")).json()
        assert int(second["application_id"][-5:]) == int(first["application_id"][-5:]) + 1

    def test_submission_replaces_other_drafts(self, client, student_headers):
        client.post(f"{BASE}/draft", json={"full_name": "Asha", "step": 2}, headers=student_headers)
        submit_application(client, student_headers)
        assert client.get(f"{BASE}/draft", headers=student_headers).json()["draft"] is None


class TestApplicationIdClash:
    def test_taken_id_is_retried_with_a_fresh_count(self, client, monkeypatch):
        first = submit_application(client, register_student(client, "a@example.com")).json()

        real_count = ApplicantStore.count_issued_ids
        counts = []

        def stale_once(self):
            counts.append(0 if not counts else real_count(self))
            return counts[-1]

        monkeypatch.setattr(ApplicantStore, "count_issued_ids", stale_once)
        response = submit_application(client, register_student(client, "b@example.com"))

        assert response.status_code == 201, response.text
        assert counts == [0, 1]
        assert response.json()["application_id"] == first["application_id"][:-5] + "00002"

    def test_clash_that_never_clears_commits_nothing(self, client, admin_headers, storage, monkeypatch):
        submit_application(client, register_student(client, "a@example.com"))
        stored_before = sorted(os.listdir(storage.root))

        monkeypatch.setattr(ApplicantStore, "count_issued_ids", lambda self: 0)
        headers = register_student(client, "b@example.com")
        response = submit_application(client, headers)

        assert response.status_code == 409
        assert "application id" in response.json()["detail"]
        assert client.get(f"{BASE}/check-status", headers=headers).json()["status"] == "new"
        assert client.get("/api/v1/admin/applicants", headers=admin_headers).json()["total"] == 1
        assert sorted(os.listdir(storage.root)) == stored_before


class TestManualTransfer:
    def test_short_reference_is_rejected(self, client, student_headers):
        submit_application(client, student_headers)
        response = client.post(
            f"{BASE}/payment/manual", data={"transfer_ref": "UTR12345678"}, headers=student_headers
        )
        assert response.status_code == 400
        assert status_of(client, student_headers)["application"]["payment_status"] == "pending"

    def test_transfer_goes_to_verification(self, client, student_headers):
        submit_application(client, student_headers)
        response = client.post(
            f"{BASE}/payment/manual",
            data={"transfer_ref": "UTR123456789"},
            files={"proof": ("receipt.png", PNG_BYTES, "image/png")},
            headers=student_headers,
        )
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["payment"]["status"] == "under_verification"
        assert body["payment"]["proof_ref"].startswith("/uploads/applications/")
        assert body["application"]["payment_status"] == "under_verification"
        assert body["application"]["status"] == "under_review"

        view = client.get(f"{BASE}/check-status", headers=student_headers).json()
        assert view["current_step"] == 6
        assert view["redirect_to"] == "verification"

    def test_draft_cannot_pay(self, client, student_headers):
        client.post(f"{BASE}/draft", json={"full_name": "Asha", "step": 5}, headers=student_headers)
        response = client.post(
            f"{BASE}/payment/manual", data={"transfer_ref": "UTR123456789"}, headers=student_headers
        )
        assert response.status_code == 409


class TestGatewayPayment:
    def test_order_and_idempotent_confirmation(self, client, student_headers, gateway):
        submitted = submit_application(client, student_headers).json()
        order = client.post(f"{BASE}/payment/order", headers=student_headers)
        assert order.status_code == 200, order.text
        order_ref = order.json()["order_ref"]
        assert order.json()["amount"] == 500
        assert gateway.orders[0]["amount"] == 50000
        assert gateway.orders[0]["receipt"] == f"receipt_{submitted['application_id']}"

        payload = {"order_ref": order_ref, "transaction_ref": "pay_001", "signature": sign(order_ref, "pay_001")}
        for _ in range(2):
            response = client.post(f"{BASE}/payment/verify", json=payload, headers=student_headers)
            assert response.status_code == 200, response.text
            assert response.json()["payment"]["status"] == "paid"
            assert response.json()["application"]["payment_status"] == "paid"

        payments = client.get(f"{BASE}/payments", headers=student_headers).json()["payments"]
        assert [p["status"] for p in payments] == ["paid"]

        view = client.get(f"{BASE}/check-status", headers=student_headers).json()
        assert view["is_complete"] is True

    def test_bad_signature_fails_payment(self, client, student_headers):
        submit_application(client, student_headers)
        order_ref = client.post(f"{BASE}/payment/order", headers=student_headers).json()["order_ref"]
        response = client.post(
            f"{BASE}/payment/verify",
            json={"order_ref": order_ref, "transaction_ref": "pay_001", "signature": "forged"},
            headers=student_headers,
        )
        assert response.status_code == 400

        payments = client.get(f"{BASE}/payments", headers=student_headers).json()["payments"]
        assert payments[0]["status"] == "failed"
        assert status_of(client, student_headers)["application"]["payment_status"] == "pending"

    def test_other_students_order_is_forbidden(self, client, student_headers):
        submit_application(client, student_headers)
        order_ref = client.post(f"{BASE}/payment/order", headers=student_headers).json()["order_ref"]

        intruder = register_student(client, "ravi@example.com", "Ravi")
        response = client.post(
            f"{BASE}/payment/verify",
            json={"order_ref": order_ref, "transaction_ref": "pay_001", "signature": sign(order_ref, "pay_001")},
            headers=intruder,
        )
        assert response.status_code == 403

    def test_disabled_gateway_answers_503(self, client, student_headers):
        submit_application(client, student_headers)
        app.dependency_overrides[get_gateway] = lambda: RazorpayGateway(None, None)
        response = client.post(f"{BASE}/payment/order", headers=student_headers)
        assert response.status_code == 503

    def test_paid_application_cannot_order_again(self, client, student_headers):
        submit_application(client, student_headers)
        order_ref = client.post(f"{BASE}/payment/order", headers=student_headers).json()["order_ref"]
        client.post(
            f"{BASE}/payment/verify",
            json={"order_ref": order_ref, "transaction_ref": "pay_001", "signature": sign(order_ref, "pay_001")},
            headers=student_headers,
        )
        assert client.post(f"{BASE}/payment/order", headers=student_headers).status_code == 409
