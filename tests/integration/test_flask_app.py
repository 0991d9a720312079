"""Chained flows against a Flask application served through WSGI."""

from http import HTTPStatus

import pytest
from flask import Flask, make_response, request
from pydantic import BaseModel

from pytest_httptesting import Cookie, HttpTester

app = Flask(__name__)
_items: dict[int, dict] = {}


@app.post("/login")
def login():
    data = request.get_json(force=True, silent=True) or {}
    if data.get("user") != "alice":
        return {"error": "unknown user"}, HTTPStatus.UNAUTHORIZED
    response = make_response({"user": "alice"}, HTTPStatus.OK)
    response.set_cookie("session", "s3cr3t", httponly=True, samesite="Lax")
    return response


@app.post("/embed")
def embed():
    response = make_response({"embedded": True}, HTTPStatus.OK)
    response.set_cookie("session", "s3cr3t", secure=True, samesite="None", partitioned=True)
    return response


@app.get("/me")
def me():
    if request.cookies.get("session") != "s3cr3t":
        return {"error": "not logged in"}, HTTPStatus.UNAUTHORIZED
    return {"name": "alice"}, HTTPStatus.OK


@app.post("/items")
def create_item():
    item = {"id": len(_items) + 1, **(request.get_json(force=True, silent=True) or {})}
    _items[item["id"]] = item
    response = make_response(item, HTTPStatus.CREATED)
    response.headers["Location"] = f"/items/{item['id']}"
    return response


@app.get("/items/<int:item_id>")
def get_item(item_id: int):
    if item_id not in _items:
        return {"error": "not found"}, HTTPStatus.NOT_FOUND
    return _items[item_id], HTTPStatus.OK


@app.delete("/items/<int:item_id>")
def delete_item(item_id: int):
    _items.pop(item_id, None)
    return "", HTTPStatus.NO_CONTENT


class User(BaseModel):
    name: str


class Item(BaseModel):
    id: int
    name: str


@pytest.fixture(autouse=True)
def reset_items():
    _items.clear()


@pytest.fixture
def flask_tester(reporter) -> HttpTester:
    return HttpTester.for_wsgi(reporter, app)


def test_login_cookie_is_chained(flask_tester):
    flask_tester.post("/login").set_json_body({"user": "alice"}).execute()
    flask_tester.assert_status("200 OK")
    flask_tester.assert_cookie_deep_equals(Cookie(name="session", value="s3cr3t", path="/", http_only=True, same_site="Lax"))

    flask_tester.get("/me").execute()

    flask_tester.assert_status_code(HTTPStatus.OK).assert_struct_deep_equals(User, User(name="alice"))


def test_partitioned_cookie_is_chained(flask_tester):
    flask_tester.post("/embed").execute()
    flask_tester.assert_cookie_deep_equals(Cookie(name="session", value="s3cr3t", path="/", secure=True, same_site="None"))

    flask_tester.get("/me").execute()

    flask_tester.assert_status_code(HTTPStatus.OK)


def test_cookie_is_not_carried_past_next_request(flask_tester):
    flask_tester.post("/login").set_json_body({"user": "alice"}).execute()
    flask_tester.get("/me").execute()
    flask_tester.assert_status_code(HTTPStatus.OK)

    flask_tester.get("/me").execute()

    flask_tester.assert_status_code(HTTPStatus.UNAUTHORIZED)


def test_unknown_user(flask_tester, reporter):
    flask_tester.post("/login").set_json_body({"user": "mallory"}).execute()
    flask_tester.assert_status_code(HTTPStatus.UNAUTHORIZED)

    with pytest.raises(reporter.Failure, match="Expected to find cookie 'session'"):
        flask_tester.assert_cookie_exists("session")


def test_created_id_is_reused(flask_tester):
    flask_tester.post("/items").set_json_body({"name": "widget"}).execute()
    flask_tester.assert_status_code(HTTPStatus.CREATED).assert_header("Location", "/items/1")
    flask_tester.assert_struct(Item, lambda item: item.name == "widget")

    flask_tester.get_with_state(lambda s: f"/items/{s.response_result.id}").execute()
    flask_tester.assert_struct_deep_equals(Item, Item(id=1, name="widget"))
    flask_tester.save_jmespath("item_id", "id")

    flask_tester.delete_with_state(lambda s: f"/items/{s.get_value('item_id', int)}").execute()
    flask_tester.assert_status_code(HTTPStatus.NO_CONTENT).assert_body(b"")

    flask_tester.get("/items/1").execute()
    flask_tester.assert_status_code(HTTPStatus.NOT_FOUND)


def test_unknown_route(flask_tester):
    flask_tester.get("/nowhere").execute()

    flask_tester.assert_status("404 Not Found")
