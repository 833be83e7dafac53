"""
API tests for the admin dashboard: applicant listing, review, payment
verification, export and contact enquiries
"""
import csv
import io

from tests.conftest import (
    PNG_BYTES,
    PROFILE_FORM,
    register_student,
    sign,
    submit_application,
)

ADMIN = "/api/v1/admin/applicants"
STUDENT = "/api/v1/student/application"


def pay_by_transfer(client, headers, transfer_ref="UTR123456789"):
    response = client.post(
        f"{STUDENT}/payment/manual",
        data={"transfer_ref": transfer_ref},
        files={"proof": ("receipt.png", PNG_BYTES, "image/png")},
        headers=headers,
    )
    assert response.status_code == 201, response.text
    return response.json()


def pay_online(client, headers, transaction_ref="pay_001"):
    order_ref = client.post(f"{STUDENT}/payment/order", headers=headers).json()["order_ref"]
    response = client.post(
        f"{STUDENT}/payment/verify",
        json={"order_ref": order_ref, "transaction_ref": transaction_ref, "signature": sign(order_ref, transaction_ref)},
        headers=headers,
    )
    assert response.status_code == 200, response.text
    return response.json()


class TestApplicantListing:
    def test_requires_admin_login(self, client, student_headers):
        assert client.get(ADMIN).status_code == 401
        assert client.get(ADMIN, headers=student_headers).status_code == 401

    def test_drafts_are_not_listed(self, client, admin_headers, student_headers):
        client.post(f"{STUDENT}/draft", json={"full_name": "Asha", "step": 2}, headers=student_headers)
        body = client.get(ADMIN, headers=admin_headers).json()
        assert body["total"] == 0
        assert body["items"] == []

    def test_search_and_filters(self, client, admin_headers):
        asha = register_student(client, "asha@example.com", "Asha Verma")
        ravi = register_student(client, "ravi@example.com", "Ravi Kumar")
        submit_application(client, asha)
        submit_application(client, ravi, form={**PROFILE_FORM, "full_name": "Ravi Kumar", "phone": "9123456780"})
        pay_by_transfer(client, ravi)

        everyone = client.get(ADMIN, headers=admin_headers).json()
        assert everyone["total"] == 2
        assert everyone["pages"] == 1

        by_name = client.get(ADMIN, params={"search": "ravi"}, headers=admin_headers).json()
        assert [item["email"] for item in by_name["items"]] == ["ravi@example.com"]

        by_phone = client.get(ADMIN, params={"search": "9123"}, headers=admin_headers).json()
        assert by_phone["total"] == 1

        verifying = client.get(
            ADMIN, params={"payment_status": "under_verification"}, headers=admin_headers
        ).json()
        assert [item["email"] for item in verifying["items"]] == ["ravi@example.com"]

        submitted = client.get(ADMIN, params={"status": "submitted"}, headers=admin_headers).json()
        assert [item["email"] for item in submitted["items"]] == ["asha@example.com"]

    def test_pagination(self, client, admin_headers):
        for n in range(3):
            submit_application(client, register_student(client, f"student{n}@example.com"))
        page = client.get(ADMIN, params={"page": 2, "limit": 2}, headers=admin_headers).json()
        assert page["total"] == 3
        assert page["pages"] == 2
        assert len(page["items"]) == 1

    def test_stats(self, client, admin_headers):
        asha = register_student(client, "asha@example.com")
        ravi = register_student(client, "ravi@example.com")
        meera = register_student(client, "meera@example.com")
        for headers in (asha, ravi, meera):
            submit_application(client, headers)
        pay_online(client, asha)
        pay_by_transfer(client, ravi)

        stats = client.get(f"{ADMIN}/stats", headers=admin_headers).json()
        assert stats == {
            "total": 3,
            "paid": 1,
            "pending": 1,
            "under_verification": 1,
            "accepted": 0,
            "rejected": 0,
            "revenue": 500,
        }

    def test_export_csv(self, client, admin_headers, student_headers):
        application_id = submit_application(client, student_headers).json()["application_id"]
        response = client.get(f"{ADMIN}/export", headers=admin_headers)
        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "attachment" in response.headers["content-disposition"]

        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0][:4] == ["Name", "Email", "Phone", "Application ID"]
        assert rows[1][0] == "Asha Verma"
        assert rows[1][3] == application_id
        assert rows[1][6:8] == ["pending", "submitted"]


class TestReview:
    def test_detail_includes_payments(self, client, admin_headers, student_headers):
        applicant_id = submit_application(client, student_headers).json()["id"]
        pay_by_transfer(client, student_headers)

        detail = client.get(f"{ADMIN}/{applicant_id}", headers=admin_headers).json()
        assert detail["applicant"]["payment_status"] == "under_verification"
        assert detail["payments"][0]["transfer_ref"] == "UTR123456789"
        assert detail["notes"] == []

    def test_unknown_applicant(self, client, admin_headers):
        response = client.get(f"{ADMIN}/00000000-0000-0000-0000-000000000000", headers=admin_headers)
        assert response.status_code == 404

    def test_accept_is_final(self, client, admin_headers, student_headers):
        applicant_id = submit_application(client, student_headers).json()["id"]
        pay_online(client, student_headers)

        response = client.post(
            f"{ADMIN}/{applicant_id}/review",
            json={"decision": "accept", "note": "Documents in order"},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["applicant"]["status"] == "accepted"
        assert body["notes"][0]["note"] == "Documents in order"
        assert body["notes"][0]["author_name"] == "Priya Nair"

        again = client.post(f"{ADMIN}/{applicant_id}/review", json={"decision": "reject"}, headers=admin_headers)
        assert again.status_code == 409

        # Terminal applications refuse further payments too
        assert client.post(f"{STUDENT}/payment/order", headers=student_headers).status_code == 409

    def test_hold_records_default_note(self, client, admin_headers, student_headers):
        applicant_id = submit_application(client, student_headers).json()["id"]
        body = client.post(
            f"{ADMIN}/{applicant_id}/review", json={"decision": "hold"}, headers=admin_headers
        ).json()
        assert body["applicant"]["status"] == "on_hold"
        assert body["notes"][0]["note"] == "Status changed to on_hold"

    def test_draft_cannot_be_reviewed(self, client, admin_headers, student_headers):
        draft_id = client.post(
            f"{STUDENT}/draft", json={"full_name": "Asha", "step": 2}, headers=student_headers
        ).json()["id"]
        response = client.post(f"{ADMIN}/{draft_id}/review", json={"decision": "accept"}, headers=admin_headers)
        assert response.status_code == 409


class TestPaymentVerification:
    def test_approve_transfer(self, client, admin_headers, student_headers):
        submit_application(client, student_headers)
        payment_id = pay_by_transfer(client, student_headers)["payment"]["id"]

        response = client.post(
            f"{ADMIN}/payments/{payment_id}/verify",
            json={"decision": "approve", "note": "Matched bank statement"},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["payment"]["status"] == "verified"
        assert body["payment"]["verified_at"] is not None
        assert body["applicant"]["payment_status"] == "verified"

        # A verified application cannot pay again
        again = client.post(
            f"{STUDENT}/payment/manual", data={"transfer_ref": "UTR987654321"}, headers=student_headers
        )
        assert again.status_code == 409

    def test_reject_then_resubmit(self, client, admin_headers, student_headers):
        submit_application(client, student_headers)
        payment_id = pay_by_transfer(client, student_headers)["payment"]["id"]

        response = client.post(
            f"{ADMIN}/payments/{payment_id}/verify",
            json={"decision": "reject", "note": "UTR not found in statement"},
            headers=admin_headers,
        )
        assert response.status_code == 200, response.text
        body = response.json()
        assert body["payment"]["status"] == "rejected"
        assert body["payment"]["reviewer_note"] == "UTR not found in statement"
        assert body["payment"]["reviewed_by"] == "Priya Nair"
        assert body["applicant"]["payment_status"] == "pending"
        assert body["applicant"]["status"] == "submitted"

        again = client.post(
            f"{ADMIN}/payments/{payment_id}/verify", json={"decision": "approve"}, headers=admin_headers
        )
        assert again.status_code == 409

        second = pay_by_transfer(client, student_headers, "UTR987654321")
        assert second["application"]["payment_status"] == "under_verification"

    def test_gateway_payment_is_not_verified_manually(self, client, admin_headers, student_headers):
        submit_application(client, student_headers)
        pay_online(client, student_headers)
        payment_id = client.get(f"{STUDENT}/payments", headers=student_headers).json()["payments"][0]["id"]
        response = client.post(
            f"{ADMIN}/payments/{payment_id}/verify", json={"decision": "approve"}, headers=admin_headers
        )
        assert response.status_code == 409


class TestEndToEnd:
    def test_draft_to_verified(self, client, admin_headers, student_headers):
        client.post(
            f"{STUDENT}/draft",
            json={"full_name": "Asha Verma", "phone": "9876543210", "step": 3},
            headers=student_headers,
        )
        assert client.get(f"{STUDENT}/check-status", headers=student_headers).json()["current_step"] == 3

        submitted = submit_application(client, student_headers).json()
        assert submitted["current_step"] == 5

        paid = pay_by_transfer(client, student_headers)
        assert paid["application"]["current_step"] == 6

        verified = client.post(
            f"{ADMIN}/payments/{paid['payment']['id']}/verify",
            json={"decision": "approve"},
            headers=admin_headers,
        ).json()
        assert verified["payment"]["status"] == "verified"
        assert verified["applicant"]["payment_status"] == "verified"

        view = client.get(f"{STUDENT}/check-status", headers=student_headers).json()
        assert view["is_complete"] is True
        assert view["redirect_to"] == "complete"

        detail = client.get(f"{ADMIN}/{submitted['id']}", headers=admin_headers).json()
        assert detail["notes"][0]["note"] == "Payment UTR123456789 verified"

        stats = client.get(f"{ADMIN}/stats", headers=admin_headers).json()
        assert stats["paid"] == 1
        assert stats["revenue"] == 500


class TestContacts:
    ENQUIRY = {
        "name": "Kiran Rao",
        "email": "Kiran@Example.com",
        "phone": "9000000001",
        "subject": "Hostel facilities",
        "message": "Is hostel accommodation available for first-year students?",
    }

    def test_public_submission_and_admin_follow_up(self, client, admin_headers):
        created = client.post("/api/v1/public/contact", json=self.ENQUIRY)
        assert created.status_code == 201
        assert created.json()["status"] == "new"
        assert created.json()["email"] == "kiran@example.com"

        listing = client.get("/api/v1/admin/contacts", headers=admin_headers).json()
        assert listing["total"] == 1

        contact_id = created.json()["id"]
        updated = client.patch(
            f"/api/v1/admin/contacts/{contact_id}", json={"status": "resolved"}, headers=admin_headers
        )
        assert updated.status_code == 200
        assert updated.json()["status"] == "resolved"

        assert client.get(
            "/api/v1/admin/contacts", params={"status": "new"}, headers=admin_headers
        ).json()["total"] == 0

    def test_invalid_enquiry(self, client):
        response = client.post("/api/v1/public/contact", json={**self.ENQUIRY, "email": "not-an-email"})
        assert response.status_code == 422

    def test_contacts_require_admin(self, client):
        assert client.get("/api/v1/admin/contacts").status_code == 401

    def test_unknown_contact(self, client, admin_headers):
        response = client.patch(
            "/api/v1/admin/contacts/00000000-0000-0000-0000-000000000000",
            json={"status": "contacted"},
            headers=admin_headers,
        )
        assert response.status_code == 404
