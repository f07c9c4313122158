"""
Tests for contractor application assignments.
"""

import pytest

from app.models.application_assignment import ApplicationAssignment
from app.models.user import PermissionLevel, UserRole

L = PermissionLevel
APPLICATION = "app-2024-001"


@pytest.fixture
def contractor_company(create_company):
    return create_company(name="Retrofit Pros", short_name="RETROF", is_contractor=True)


@pytest.fixture
def owner(create_user, contractor_company):
    return create_user(
        email="owner@example.com",
        role=UserRole.CONTRACTOR_ACCOUNT_OWNER,
        company_id=contractor_company.id,
    )


@pytest.fixture
def worker(create_user, contractor_company):
    return create_user(
        email="worker@example.com",
        role=UserRole.CONTRACTOR_TEAM_MEMBER,
        permission_level=L.EDITOR,
        company_id=contractor_company.id,
    )


def assign(client, user_id, permissions):
    return client.post(
        f"/api/contractor/applications/{APPLICATION}/update-permissions",
        json={"userId": user_id, "permissions": permissions},
    )


def access(client):
    return client.get(f"/api/contractor/applications/{APPLICATION}/access").json()


class TestAssignments:
    def test_owner_grants_edit(self, client, db_session, owner, worker, login):
        login("owner@example.com")

        response = assign(client, worker.id, ["edit", "view", "edit"])

        assert response.status_code == 200
        assert response.json()["permissions"] == ["edit", "view"]
        assignment = db_session.query(ApplicationAssignment).one()
        assert assignment.assigned_by == owner.id

    def test_reassignment_replaces_permissions(self, client, db_session, owner, worker, login):
        login("owner@example.com")
        assign(client, worker.id, ["edit"])

        response = assign(client, worker.id, [])

        assert response.status_code == 200
        db_session.expire_all()
        assert db_session.query(ApplicationAssignment).one().permissions == []

    def test_worker_cannot_assign(self, client, worker, login):
        login("worker@example.com")

        response = assign(client, worker.id, ["edit"])

        assert response.status_code == 403

    def test_manager_level_worker_can_assign(self, client, create_user, contractor_company, worker, login):
        create_user(
            email="lead@example.com",
            role=UserRole.CONTRACTOR_TEAM_MEMBER,
            permission_level=L.MANAGER,
            company_id=contractor_company.id,
        )
        login("lead@example.com")

        assert assign(client, worker.id, ["view"]).status_code == 200

    def test_only_team_members_take_assignments(self, client, owner, login):
        login("owner@example.com")

        response = assign(client, owner.id, ["edit"])

        assert response.status_code == 400

    def test_other_company_worker_not_found(self, client, create_company, create_user, owner, login):
        other = create_company(name="Other Contractors", short_name="OTHERC", is_contractor=True)
        outsider = create_user(
            email="outsider@example.com",
            role=UserRole.CONTRACTOR_TEAM_MEMBER,
            company_id=other.id,
        )
        login("owner@example.com")

        assert assign(client, outsider.id, ["edit"]).status_code == 404

    def test_unknown_permission_rejected(self, client, owner, worker, login):
        login("owner@example.com")
        assert assign(client, worker.id, ["delete"]).status_code == 400


class TestAccess:
    def test_unassigned_worker_has_no_access(self, client, worker, login):
        login("worker@example.com")
        assert access(client) == {"canView": False, "canEdit": False}

    def test_view_assignment(self, client, owner, worker, login):
        login("owner@example.com")
        assign(client, worker.id, ["view"])
        client.post("/api/auth/logout")

        login("worker@example.com")
        assert access(client) == {"canView": True, "canEdit": False}

    def test_edit_assignment_implies_view(self, client, owner, worker, login):
        login("owner@example.com")
        assign(client, worker.id, ["edit"])
        client.post("/api/auth/logout")

        login("worker@example.com")
        assert access(client) == {"canView": True, "canEdit": True}

    def test_owner_needs_no_assignment(self, client, owner, login):
        login("owner@example.com")
        assert access(client) == {"canView": True, "canEdit": True}

    def test_company_admin_is_not_a_contractor(self, client, create_user, create_company, login):
        company = create_company(name="Acme", short_name="ACME")
        create_user(email="admin@example.com", role=UserRole.COMPANY_ADMIN, company_id=company.id)
        login("admin@example.com")

        assert access(client) == {"canView": False, "canEdit": False}
