"""
API tests: the route surface end to end, including guard chain fallbacks.
"""

import pytest

from app.config import get_settings
from app.exceptions import AggregationError
from app.services import projects as project_service
from factories import TEST_PASSWORD, login_as, make_project, make_task, make_user


class TestAuthRoutes:

    @pytest.mark.asyncio
    async def test_register_login_logout(self, client):
        registered = await client.post("/auth/register", json={
            "email": "ada@example.com",
            "name": "Ada",
            "password": "pw-12345",
            "password_check": "pw-12345",
        })
        assert registered.status_code == 201
        body = registered.json()
        assert body["email"] == "ada@example.com"
        assert body["admin"] is False
        assert "password_hash" not in body

        login = await client.post("/auth/login", json={
            "email": "ada@example.com",
            "password": "pw-12345",
        })
        assert login.status_code == 200
        assert get_settings().session_cookie_name in login.cookies

        index = await client.get("/")
        assert index.json()["user"]["name"] == "Ada"

        logout = await client.post("/auth/logout")
        assert logout.status_code == 303
        assert logout.headers["location"] == "/"

    @pytest.mark.asyncio
    async def test_register_password_mismatch(self, client):
        response = await client.post("/auth/register", json={
            "email": "ada@example.com",
            "name": "Ada",
            "password": "one",
            "password_check": "two",
        })
        assert response.status_code == 422
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_register_duplicate_email(self, client, test_session):
        await make_user(test_session)
        response = await client.post("/auth/register", json={
            "email": "ada@example.com",
            "name": "Other Ada",
            "password": "pw",
            "password_check": "pw",
        })
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_login_wrong_password(self, client, test_session):
        await make_user(test_session)
        response = await client.post("/auth/login", json={
            "email": "ada@example.com",
            "password": "nope",
        })
        assert response.status_code == 401
        assert get_settings().session_cookie_name not in response.cookies

    @pytest.mark.asyncio
    async def test_login_unknown_email(self, client):
        response = await client.post("/auth/login", json={
            "email": "ghost@example.com",
            "password": TEST_PASSWORD,
        })
        assert response.status_code == 401


class TestIndexAndProfile:

    @pytest.mark.asyncio
    async def test_index_anonymous(self, client):
        response = await client.get("/")
        assert response.status_code == 200
        assert response.json() == {"user": None}

    @pytest.mark.asyncio
    async def test_index_with_tampered_cookie_is_anonymous(self, client):
        client.cookies.set(get_settings().session_cookie_name, "1.forged.cookie")
        response = await client.get("/")
        assert response.json() == {"user": None}

    @pytest.mark.asyncio
    async def test_profile_redirects_anonymous_to_login(self, client):
        response = await client.get("/profile")
        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    @pytest.mark.asyncio
    async def test_profile_redirect_lands_on_login_view(self, client):
        redirect = await client.get("/profile")

        landing = await client.get(redirect.headers["location"])

        assert landing.status_code == 200
        assert landing.json()["user"] is None
        assert landing.json()["login"] == {"method": "POST", "path": "/auth/login"}

    @pytest.mark.asyncio
    async def test_login_view_for_signed_in_user(self, client, test_session):
        user = await make_user(test_session)
        login_as(client, user)

        response = await client.get("/login")

        assert response.status_code == 200
        assert set(response.json()) == {"user"}
        assert response.json()["user"]["id"] == user.id

    @pytest.mark.asyncio
    async def test_profile_shows_projects_with_recent_tasks(self, client, test_session):
        user = await make_user(test_session)
        project = await make_project(test_session, user)
        for day in range(1, 6):
            await make_task(test_session, project, description=f"d{day}", start=f"2024-01-0{day} 00:00:00")
        await make_project(test_session, user, name="Empty", start="2000-01-01 00:00:00")
        login_as(client, user)

        response = await client.get("/profile")

        assert response.status_code == 200
        body = response.json()
        assert body["user"]["id"] == user.id
        assert [p["project"]["name"] for p in body["projects"]] == ["Garden", "Empty"]
        assert [t["description"] for t in body["projects"][0]["tasks"]] == ["d5", "d4", "d3"]
        assert body["projects"][1]["tasks"] is None

    @pytest.mark.asyncio
    async def test_profile_degrades_when_projects_fail(self, client, test_session, monkeypatch):
        user = await make_user(test_session)
        login_as(client, user)

        async def failing(session, user_id):
            raise AggregationError("load projects with recent tasks")

        monkeypatch.setattr(project_service, "load_projects_with_recent_tasks", failing)

        response = await client.get("/profile")

        assert response.status_code == 200
        assert response.json()["user"]["id"] == user.id
        assert response.json()["projects"] is None


class TestAdminLookup:

    @pytest.mark.asyncio
    async def test_admin_can_look_up_users(self, client, test_session):
        admin = await make_user(test_session, email="root@example.com", admin=True)
        other = await make_user(test_session, email="bob@example.com", name="Bob")
        login_as(client, admin)

        response = await client.get(f"/users/{other.id}")

        assert response.status_code == 200
        assert response.json()["name"] == "Bob"

    @pytest.mark.asyncio
    async def test_admin_lookup_of_missing_user(self, client, test_session):
        admin = await make_user(test_session, email="root@example.com", admin=True)
        login_as(client, admin)

        response = await client.get("/users/999")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_regular_user_is_redirected(self, client, test_session):
        user = await make_user(test_session)
        login_as(client, user)

        response = await client.get(f"/users/{user.id}")

        assert response.status_code == 303
        assert response.headers["location"] == "/"

    @pytest.mark.asyncio
    async def test_anonymous_is_redirected(self, client):
        response = await client.get("/users/1")
        assert response.status_code == 303
        assert response.headers["location"] == "/"


class TestProjectRoutes:

    @pytest.mark.asyncio
    async def test_anonymous_redirects(self, client):
        for method, url in [
            ("GET", "/projects/"),
            ("GET", "/projects/1"),
            ("DELETE", "/projects/1"),
        ]:
            response = await client.request(method, url)
            assert response.status_code == 303, url
            assert response.headers["location"] == "/login"

            landing = await client.get(response.headers["location"])
            assert landing.status_code == 200, url

        created = await client.post("/projects/", json={"name": "Garden"})
        assert created.status_code == 303

    @pytest.mark.asyncio
    async def test_create_then_view(self, client, test_session):
        user = await make_user(test_session)
        login_as(client, user)

        created = await client.post("/projects/", json={"name": "Garden"})
        assert created.status_code == 201
        project = created.json()
        assert project["owner"] == user.id
        assert project["participants"] == []
        assert project["proj_end_date"] is None

        detail = await client.get(f"/projects/{project['id']}")
        assert detail.status_code == 200
        assert detail.json()["project"]["id"] == project["id"]
        assert detail.json()["tasks"] == []

        listing = await client.get("/projects/")
        assert [p["project"]["id"] for p in listing.json()] == [project["id"]]
        assert listing.json()[0]["tasks"] is None

    @pytest.mark.asyncio
    async def test_other_users_project_is_not_found(self, client, test_session):
        owner = await make_user(test_session)
        stranger = await make_user(test_session, email="eve@example.com", name="Eve")
        project = await make_project(test_session, owner)
        login_as(client, stranger)

        assert (await client.get(f"/projects/{project.id}")).status_code == 404
        assert (await client.delete(f"/projects/{project.id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_participant_can_view_but_not_edit(self, client, test_session):
        owner = await make_user(test_session)
        bob = await make_user(test_session, email="bob@example.com", name="Bob")
        project = await make_project(test_session, owner)

        login_as(client, owner)
        shared = await client.post(f"/projects/{project.id}/participants", json={"user_id": bob.id})
        assert shared.status_code == 200
        assert shared.json()["participants"] == [bob.id]

        login_as(client, bob)
        assert (await client.get(f"/projects/{project.id}")).status_code == 200
        edit = await client.patch(
            f"/projects/{project.id}", json={"name": "Mine", "end_date": "2024-05-01T10:00:00"}
        )
        assert edit.status_code == 404

    @pytest.mark.asyncio
    async def test_add_unknown_participant(self, client, test_session):
        owner = await make_user(test_session)
        project = await make_project(test_session, owner)
        login_as(client, owner)

        response = await client.post(f"/projects/{project.id}/participants", json={"user_id": 999})

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_edit_project(self, client, test_session):
        user = await make_user(test_session)
        project = await make_project(test_session, user)
        login_as(client, user)

        response = await client.patch(
            f"/projects/{project.id}", json={"name": "Orchard", "end_date": "2024-05-01T10:00:00"}
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Orchard"
        assert response.json()["proj_end_date"] == "2024-05-01 10:00:00"

    @pytest.mark.asyncio
    async def test_edit_project_rejects_bad_date(self, client, test_session):
        user = await make_user(test_session)
        project = await make_project(test_session, user)
        login_as(client, user)

        response = await client.patch(
            f"/projects/{project.id}", json={"name": "Orchard", "end_date": "next spring"}
        )

        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_delete_project(self, client, test_session):
        user = await make_user(test_session)
        project = await make_project(test_session, user)
        await make_task(test_session, project)
        login_as(client, user)

        response = await client.delete(f"/projects/{project.id}")

        assert response.status_code == 200
        assert response.json() == {"deleted": True}
        assert (await client.get(f"/projects/{project.id}")).status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize("project_id", [0, -4])
    async def test_detail_with_non_positive_id_is_not_found(
        self, client, test_session, project_id
    ):
        user = await make_user(test_session)
        login_as(client, user)

        response = await client.get(f"/projects/{project_id}")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_detail_fails_generically_when_tasks_cannot_load(
        self, client, test_session, monkeypatch
    ):
        user = await make_user(test_session)
        project = await make_project(test_session, user)
        login_as(client, user)

        async def failing(session, project_id):
            raise AggregationError("load tasks")

        monkeypatch.setattr(project_service, "load_tasks_for_project", failing)

        response = await client.get(f"/projects/{project.id}")

        assert response.status_code == 500
        assert response.json()["error"] == "aggregation_error"
        assert "load tasks" not in response.json()["message"]


class TestTaskRoutes:

    @pytest.mark.asyncio
    async def test_add_and_complete_task(self, client, test_session):
        user = await make_user(test_session)
        project = await make_project(test_session, user)
        login_as(client, user)

        created = await client.post(f"/projects/{project.id}/tasks/", json={"description": "Dig"})
        assert created.status_code == 201
        task = created.json()
        assert task["owner_proj"] == project.id
        assert task["task_end_date"] is None
        assert task["time_delta"] is None

        completed = await client.post(f"/projects/{project.id}/tasks/{task['id']}/complete")
        assert completed.status_code == 200
        body = completed.json()
        assert body["task_end_date"] is not None
        assert body["time_delta"] is not None
        assert body["time_delta"] >= 0

    @pytest.mark.asyncio
    async def test_complete_task_of_other_project(self, client, test_session):
        user = await make_user(test_session)
        project = await make_project(test_session, user)
        other = await make_project(test_session, user, name="Other")
        task = await make_task(test_session, other)
        login_as(client, user)

        response = await client.post(f"/projects/{project.id}/tasks/{task.id}/complete")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_complete_missing_task(self, client, test_session):
        user = await make_user(test_session)
        project = await make_project(test_session, user)
        login_as(client, user)

        response = await client.post(f"/projects/{project.id}/tasks/999/complete")

        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_task(self, client, test_session):
        user = await make_user(test_session)
        project = await make_project(test_session, user)
        task = await make_task(test_session, project)
        login_as(client, user)

        response = await client.delete(f"/projects/{project.id}/tasks/{task.id}")

        assert response.status_code == 200
        detail = await client.get(f"/projects/{project.id}")
        assert detail.json()["tasks"] == []

    @pytest.mark.asyncio
    async def test_anonymous_add_task_redirects(self, client):
        response = await client.post("/projects/1/tasks/", json={"description": "Dig"})
        assert response.status_code == 303
        assert response.headers["location"] == "/login"


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")
        assert response.json() == {"status": "healthy"}
