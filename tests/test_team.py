"""
Tests for team management endpoints (permission levels, deactivation, removal).
"""

import pytest
from fastapi.testclient import TestClient

from app.models.user import PermissionLevel, UserRole
from main import app

L = PermissionLevel


@pytest.fixture
def company(create_company):
    return create_company(name="Acme Manufacturing", short_name="ACMEMA")


@pytest.fixture
def admin(create_user, company):
    return create_user(
        email="admin@example.com",
        role=UserRole.COMPANY_ADMIN,
        permission_level=L.OWNER,
        company_id=company.id,
    )


@pytest.fixture
def member(create_user, company):
    return create_user(email="member@example.com", permission_level=L.VIEWER, company_id=company.id)


class TestListTeam:
    def test_lists_own_company_only(self, client, create_user, create_company, admin, member, login):
        other = create_company(name="Other Co", short_name="OTHERC")
        create_user(email="stranger@example.com", company_id=other.id)
        login("admin@example.com")

        response = client.get("/api/team")

        assert response.status_code == 200
        emails = {user["email"] for user in response.json()}
        assert emails == {"admin@example.com", "member@example.com"}

    def test_requires_session(self, client):
        assert client.get("/api/team").status_code == 401

    def test_contractor_individual_lacks_permission(self, client, create_user, login):
        create_user(email="solo@example.com", role=UserRole.CONTRACTOR_INDIVIDUAL)
        login("solo@example.com")

        response = client.get("/api/team")

        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient permissions"


class TestPermissionLevels:
    def test_admin_promotes_member(self, client, db_session, admin, member, login):
        login("admin@example.com")

        response = client.patch(f"/api/team/{member.id}/permission-level", json={"permissionLevel": "manager"})

        assert response.status_code == 200
        assert response.json()["permissionLevel"] == "manager"
        db_session.refresh(member)
        assert member.permission_level == L.MANAGER

    def test_manager_can_grant_editor(self, client, create_user, company, member, login):
        create_user(email="manager@example.com", permission_level=L.MANAGER, company_id=company.id)
        login("manager@example.com")

        response = client.patch(f"/api/team/{member.id}/permission-level", json={"permissionLevel": "editor"})

        assert response.status_code == 200

    def test_manager_cannot_grant_manager(self, client, create_user, company, member, login):
        create_user(email="manager@example.com", permission_level=L.MANAGER, company_id=company.id)
        login("manager@example.com")

        response = client.patch(f"/api/team/{member.id}/permission-level", json={"permissionLevel": "manager"})

        assert response.status_code == 403

    def test_manager_cannot_touch_other_manager(self, client, create_user, company, login):
        create_user(email="manager@example.com", permission_level=L.MANAGER, company_id=company.id)
        peer = create_user(email="peer@example.com", permission_level=L.MANAGER, company_id=company.id)
        login("manager@example.com")

        response = client.patch(f"/api/team/{peer.id}/permission-level", json={"permissionLevel": "viewer"})

        assert response.status_code == 403

    def test_manager_cannot_touch_admin(self, client, create_user, company, admin, login):
        create_user(email="manager@example.com", permission_level=L.MANAGER, company_id=company.id)
        login("manager@example.com")

        response = client.patch(f"/api/users/{admin.id}/deactivate")

        assert response.status_code == 403

    def test_editor_cannot_change_levels(self, client, create_user, company, member, login):
        create_user(email="editor@example.com", permission_level=L.EDITOR, company_id=company.id)
        login("editor@example.com")

        response = client.patch(f"/api/team/{member.id}/permission-level", json={"permissionLevel": "editor"})

        assert response.status_code == 403
        assert response.json()["detail"] == "Insufficient permissions"

    def test_other_company_user_is_not_found(self, client, create_user, create_company, admin, login):
        other = create_company(name="Other Co", short_name="OTHERC")
        stranger = create_user(email="stranger@example.com", company_id=other.id)
        login("admin@example.com")

        response = client.patch(f"/api/team/{stranger.id}/permission-level", json={"permissionLevel": "editor"})

        assert response.status_code == 404

    def test_cannot_change_self(self, client, admin, login):
        login("admin@example.com")

        response = client.patch(f"/api/team/{admin.id}/permission-level", json={"permissionLevel": "viewer"})

        assert response.status_code == 400

    def test_invalid_level_rejected(self, client, admin, member, login):
        login("admin@example.com")

        response = client.patch(f"/api/team/{member.id}/permission-level", json={"permissionLevel": "emperor"})

        assert response.status_code == 400


class TestDeactivateAndRemove:
    def test_deactivated_member_is_locked_out(self, client, admin, member, login):
        # The member keeps a separate client (and cookie jar) of their own
        with TestClient(app) as member_client:
            member_client.post(
                "/api/auth/login", json={"email": "member@example.com", "password": "SecurePass123!"}
            )
            assert member_client.get("/api/auth/user").status_code == 200

            login("admin@example.com")
            response = client.patch(f"/api/users/{member.id}/deactivate")
            assert response.status_code == 200

            assert member_client.get("/api/auth/user").status_code == 403

    def test_remove_keeps_account(self, client, db_session, admin, member, login):
        login("admin@example.com")

        response = client.delete(f"/api/team/member/{member.id}")

        assert response.status_code == 200
        assert response.json()["message"] == "Team member removed successfully"
        db_session.refresh(member)
        assert member.company_id is None
        assert member.is_active is True

    def test_remove_unknown_user(self, client, admin, login):
        login("admin@example.com")
        assert client.delete("/api/team/member/does-not-exist").status_code == 404
