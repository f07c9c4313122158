"""
Tests for email verification.

Tests:
- Post-account 6-digit codes (verify, expiry, already verified, resend)
- Legacy verification link
- Pre-account verification records (send, verify, attempts, cleanup)
"""

from datetime import timedelta

from app.core.security import utcnow
from app.core.verification import (
    cleanup_expired_registration_verifications,
    generate_verification_code,
    has_verified_registration,
)
from app.models.registration_verification import RegistrationVerification

COOKIE = "portal.sid"


def wrong_code(code):
    return "000000" if code != "000000" else "111111"


def test_generated_codes_are_six_digits():
    for _ in range(20):
        code = generate_verification_code()
        assert len(code) == 6
        assert code.isdigit()


class TestVerifyCode:
    def test_correct_code_verifies_and_signs_in(self, client, db_session, create_user):
        user = create_user(
            email="alice@example.com",
            is_email_verified=False,
            email_verification_token="123456",
            verification_token_expiry=utcnow() + timedelta(minutes=10),
        )

        response = client.post("/api/auth/verify-code", json={"email": "alice@example.com", "code": "123456"})

        assert response.status_code == 200
        assert response.json()["message"].startswith("Email verified successfully!")
        db_session.refresh(user)
        assert user.is_email_verified is True
        assert user.email_verification_token is None
        assert user.email_verified_at is not None

        assert client.get("/api/auth/user").status_code == 200

    def test_deactivated_account_gets_no_session(self, client, create_user):
        create_user(
            email="alice@example.com",
            is_active=False,
            is_email_verified=False,
            email_verification_token="123456",
            verification_token_expiry=utcnow() + timedelta(minutes=10),
        )

        response = client.post("/api/auth/verify-code", json={"email": "alice@example.com", "code": "123456"})

        assert response.status_code == 403
        assert "deactivated" in response.json()["detail"]
        assert client.cookies.get(COOKIE) is None

    def test_wrong_code_rejected(self, client, create_user):
        create_user(
            email="alice@example.com",
            is_email_verified=False,
            email_verification_token="123456",
            verification_token_expiry=utcnow() + timedelta(minutes=10),
        )

        response = client.post("/api/auth/verify-code", json={"email": "alice@example.com", "code": "654321"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid verification code"
        assert client.cookies.get(COOKIE) is None

    def test_expired_code_rejected(self, client, db_session, create_user):
        user = create_user(
            email="alice@example.com",
            is_email_verified=False,
            email_verification_token="123456",
            verification_token_expiry=utcnow() - timedelta(minutes=1),
        )

        response = client.post("/api/auth/verify-code", json={"email": "alice@example.com", "code": "123456"})

        assert response.status_code == 400
        assert "expired" in response.json()["detail"]
        db_session.refresh(user)
        assert user.is_email_verified is False

    def test_already_verified_rejected(self, client, create_user):
        create_user(email="alice@example.com", is_email_verified=True)

        response = client.post("/api/auth/verify-code", json={"email": "alice@example.com", "code": "123456"})

        assert response.status_code == 400
        assert "already verified" in response.json()["detail"]

    def test_unknown_user(self, client):
        response = client.post("/api/auth/verify-code", json={"email": "ghost@example.com", "code": "123456"})

        assert response.status_code == 400
        assert response.json()["detail"] == "User not found"

    def test_code_must_be_six_digits(self, client):
        response = client.post("/api/auth/verify-code", json={"email": "alice@example.com", "code": "12ab56"})
        assert response.status_code == 400

    def test_registration_code_round_trip(self, client, db_session, registration_payload, outbox):
        """A standard registrant verifies with the emailed code and can then log in."""
        client.post("/api/auth/register", json=registration_payload("standard"))
        code = outbox[-1]["verification_code"]

        response = client.post("/api/auth/verify-code", json={"email": "new@example.com", "code": code})

        assert response.status_code == 200
        assert response.json()["user"]["isEmailVerified"] is True


class TestVerificationLink:
    def test_missing_token(self, client):
        response = client.get("/api/auth/verify-email")

        assert response.status_code == 400
        assert response.json()["detail"] == "Verification token is required"

    def test_valid_link(self, client, db_session, create_user):
        user = create_user(
            email="alice@example.com",
            is_email_verified=False,
            email_verification_token="987654",
            verification_token_expiry=utcnow() + timedelta(minutes=10),
        )

        response = client.get("/api/auth/verify-email", params={"token": "987654"})

        assert response.status_code == 200
        assert "successfully verified" in response.json()["message"]
        db_session.refresh(user)
        assert user.is_email_verified is True

    def test_unknown_token(self, client):
        response = client.get("/api/auth/verify-email", params={"token": "nope"})
        assert response.status_code == 400

    def test_second_click_is_rejected(self, client, create_user):
        create_user(
            email="alice@example.com",
            is_email_verified=False,
            email_verification_token="987654",
            verification_token_expiry=utcnow() + timedelta(minutes=10),
        )
        assert client.get("/api/auth/verify-email", params={"token": "987654"}).status_code == 200

        response = client.get("/api/auth/verify-email", params={"token": "987654"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Invalid or expired verification token"


class TestResendVerification:
    def test_resend_replaces_code(self, client, db_session, create_user, outbox):
        user = create_user(
            email="alice@example.com",
            is_email_verified=False,
            email_verification_token="123456",
            verification_token_expiry=utcnow() + timedelta(minutes=10),
        )

        response = client.post("/api/auth/resend-verification", json={"email": "alice@example.com"})

        assert response.status_code == 200
        assert response.json()["message"] == "Verification email sent! Please check your email."
        db_session.refresh(user)
        assert outbox[-1]["verification_code"] == user.email_verification_token

    def test_unknown_user_is_404(self, client):
        response = client.post("/api/auth/resend-verification", json={"email": "ghost@example.com"})
        assert response.status_code == 404

    def test_already_verified(self, client, create_user):
        create_user(email="alice@example.com", is_email_verified=True)

        response = client.post("/api/auth/resend-verification", json={"email": "alice@example.com"})

        assert response.status_code == 400
        assert response.json()["detail"] == "Email is already verified"

    def test_delivery_failure_is_500(self, client, create_user, broker_down):
        create_user(email="alice@example.com", is_email_verified=False)

        response = client.post("/api/auth/resend-verification", json={"email": "alice@example.com"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to send verification email"


class TestRegistrationVerification:
    def test_send_creates_record_and_emails_code(self, client, db_session, outbox):
        response = client.post("/api/auth/send-registration-verification", json={"email": "owner@example.com"})

        assert response.status_code == 200
        assert response.json()["message"] == "Verification code sent successfully"
        record = db_session.get(RegistrationVerification, "owner@example.com")
        assert record is not None
        assert record.verified_at is None
        assert outbox[-1]["verification_code"] == record.code

    def test_send_for_existing_account_rejected(self, client, create_user):
        create_user(email="alice@example.com")

        response = client.post("/api/auth/send-registration-verification", json={"email": "alice@example.com"})

        assert response.status_code == 400
        assert response.json()["detail"] == "User with this email already exists"

    def test_send_delivery_failure_is_500(self, client, broker_down):
        response = client.post("/api/auth/send-registration-verification", json={"email": "owner@example.com"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Failed to send verification email"

    def test_verify_marks_record(self, client, db_session, outbox):
        client.post("/api/auth/send-registration-verification", json={"email": "owner@example.com"})
        code = outbox[-1]["verification_code"]

        response = client.post("/api/auth/verify-registration-code", json={"email": "owner@example.com", "code": code})

        assert response.status_code == 200
        assert response.json()["message"] == "Email verified successfully"
        assert has_verified_registration(db_session, "owner@example.com")

    def test_no_pending_record(self, client):
        response = client.post("/api/auth/verify-registration-code", json={"email": "owner@example.com", "code": "123456"})

        assert response.status_code == 400
        assert response.json()["detail"] == "No pending verification found for this email"

    def test_resubmission_after_verification_rejected(self, client, outbox):
        client.post("/api/auth/send-registration-verification", json={"email": "owner@example.com"})
        code = outbox[-1]["verification_code"]
        client.post("/api/auth/verify-registration-code", json={"email": "owner@example.com", "code": code})

        response = client.post("/api/auth/verify-registration-code", json={"email": "owner@example.com", "code": code})

        assert response.status_code == 400
        assert response.json()["detail"] == "Email is already verified"

    def test_expired_code_rejected(self, client, db_session, outbox):
        client.post("/api/auth/send-registration-verification", json={"email": "owner@example.com"})
        record = db_session.get(RegistrationVerification, "owner@example.com")
        record.expires_at = utcnow() - timedelta(seconds=1)
        db_session.commit()

        response = client.post(
            "/api/auth/verify-registration-code",
            json={"email": "owner@example.com", "code": outbox[-1]["verification_code"]},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Verification code has expired"
        assert not has_verified_registration(db_session, "owner@example.com")

    def test_attempts_are_limited(self, client, db_session, outbox):
        client.post("/api/auth/send-registration-verification", json={"email": "owner@example.com"})
        code = outbox[-1]["verification_code"]
        payload = {"email": "owner@example.com", "code": wrong_code(code)}

        for _ in range(5):
            response = client.post("/api/auth/verify-registration-code", json=payload)
            assert response.json()["detail"] == "Invalid verification code"

        response = client.post("/api/auth/verify-registration-code", json=payload)
        assert response.status_code == 400
        assert response.json()["detail"] == "Too many attempts. Please request a new code."

        # The record is gone; even the right code no longer works
        db_session.expire_all()
        assert db_session.get(RegistrationVerification, "owner@example.com") is None
        response = client.post("/api/auth/verify-registration-code", json={"email": "owner@example.com", "code": code})
        assert response.json()["detail"] == "No pending verification found for this email"

    def test_resend_resets_attempts(self, client, db_session, outbox):
        client.post("/api/auth/send-registration-verification", json={"email": "owner@example.com"})
        first = outbox[-1]["verification_code"]
        client.post("/api/auth/verify-registration-code", json={"email": "owner@example.com", "code": wrong_code(first)})

        client.post("/api/auth/send-registration-verification", json={"email": "owner@example.com"})

        record = db_session.get(RegistrationVerification, "owner@example.com")
        db_session.refresh(record)
        assert record.attempts == 0
        assert record.code == outbox[-1]["verification_code"]


class TestCleanup:
    def test_removes_expired_and_stale_records(self, db_session):
        now = utcnow()
        db_session.add_all([
            RegistrationVerification(email="expired@example.com", code="111111", expires_at=now - timedelta(minutes=1)),
            RegistrationVerification(email="pending@example.com", code="222222", expires_at=now + timedelta(minutes=5)),
            RegistrationVerification(
                email="stale@example.com", code="333333",
                expires_at=now - timedelta(hours=30), verified_at=now - timedelta(hours=25),
            ),
            RegistrationVerification(
                email="fresh@example.com", code="444444",
                expires_at=now - timedelta(hours=1), verified_at=now - timedelta(hours=1),
            ),
        ])
        db_session.commit()

        removed = cleanup_expired_registration_verifications(db_session)

        assert removed == 2
        remaining = {record.email for record in db_session.query(RegistrationVerification).all()}
        assert remaining == {"pending@example.com", "fresh@example.com"}
