from http import HTTPStatus

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from userhub import crud
from userhub.main import app


def test_unknown_user_returns_404_page(client):
    response = client.get("/users/999")
    assert response.status_code == HTTPStatus.NOT_FOUND
    assert "User not found." in response.text


def test_unknown_user_returns_json_for_api_clients(client):
    response = client.get("/users/999", headers={"accept": "application/json"})
    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.json() == {"detail": "User not found."}


def test_non_admin_cannot_delete(client, user_factory, sign_in, db_session):
    user = user_factory()
    other = user_factory()
    sign_in(user)

    response = client.post(f"/users/{other.id}/delete")
    assert response.status_code == HTTPStatus.FORBIDDEN
    assert crud.count_users(db_session) == 2


def test_delete_requires_sign_in(client, user_factory, db_session):
    user = user_factory()

    response = client.delete(f"/users/{user.id}")
    assert response.status_code == HTTPStatus.UNAUTHORIZED
    assert crud.count_users(db_session) == 1


def test_admin_cannot_delete_themselves(client, user_factory, sign_in, db_session):
    admin = user_factory(admin=True)
    sign_in(admin)

    response = client.post(f"/users/{admin.id}/delete")
    assert response.status_code == HTTPStatus.FORBIDDEN
    assert crud.count_users(db_session) == 1


def test_admin_delete_unknown_user_returns_404(client, user_factory, sign_in):
    sign_in(user_factory(admin=True))

    response = client.post("/users/999/delete")
    assert response.status_code == HTTPStatus.NOT_FOUND


def test_cannot_edit_another_user(client, user_factory, sign_in, db_session):
    user = user_factory()
    other = user_factory(name="Untouched")
    sign_in(user)

    assert client.get(f"/users/{other.id}/edit").status_code == HTTPStatus.FORBIDDEN
    response = client.post(
        f"/users/{other.id}", data={"name": "Hijacked", "email": other.email}
    )
    assert response.status_code == HTTPStatus.FORBIDDEN
    db_session.refresh(other)
    assert other.name == "Untouched"


def test_database_failure_renders_500(client, user_factory, sign_in, monkeypatch):
    """A failing commit on delete surfaces as a clean 500 page."""
    user = user_factory()
    sign_in(user_factory(admin=True))

    def _fail(db, target):
        raise OperationalError("DELETE FROM users", {}, Exception("disk I/O error"))

    monkeypatch.setattr(crud, "delete_user", _fail)

    with TestClient(app, raise_server_exceptions=False, cookies=client.cookies) as failing_client:
        response = failing_client.post(f"/users/{user.id}/delete")

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert "Internal server error" in response.text
    assert "Sign out" in response.text


def test_error_pages_keep_signed_in_header(client, user_factory, sign_in):
    user = user_factory()
    other = user_factory()
    sign_in(user)

    forbidden = client.get(f"/users/{other.id}/edit")
    assert forbidden.status_code == HTTPStatus.FORBIDDEN
    assert "Sign out" in forbidden.text
    assert f'href="/users/{user.id}/edit"' in forbidden.text

    missing = client.get("/users/999")
    assert missing.status_code == HTTPStatus.NOT_FOUND
    assert "Sign out" in missing.text


def test_signed_out_error_page_offers_sign_in(client):
    response = client.get("/users/999")
    assert "Sign out" not in response.text
    assert 'href="/signin"' in response.text
