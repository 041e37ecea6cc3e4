"""Integration tests for controllers served through FastAPI."""

import pytest
from fastapi.testclient import TestClient
from pydantic import BaseModel

from viewkit.controller import Controller, Text
from viewkit.core.app_factory import create_app


class Post(BaseModel):
    title: str


@pytest.fixture
def client(views, write_template):
    write_template(views, "posts/index.html.jinja", "<h1>{{ title }}</h1>")
    write_template(views, "layout/application.html.jinja", "<body>{{ catch_content() }}</body>")

    class Posts(Controller):
        def index(self):
            self.context["title"] = self.params.get("title", "Posts")
            return self.render()

        def show(self):
            return self.display(Post(title="Hello"))

        def create(self):
            return self.render(Text("created"), status=201, location="/posts/1", layout=False)

        def missing(self):
            return self.render()

    Posts.set_template_roots([views])
    Posts.provides("json", "xml")

    app = create_app(
        [
            ("/posts", Posts, "index"),
            ("/posts/show", Posts, "show"),
            ("/posts/create", Posts, "create"),
            ("/posts/missing", Posts, "missing"),
        ]
    )
    with TestClient(app) as test_client:
        yield test_client


def test_renders_html_in_layout(client):
    response = client.get("/posts", params={"title": "Hi"})

    assert response.status_code == 200
    assert response.text == "<body><h1>Hi</h1></body>"
    assert response.headers["content-type"] == "text/html; charset=utf-8"


def test_display_falls_back_to_json(client):
    response = client.get("/posts/show", headers={"Accept": "application/json"})

    assert response.status_code == 200
    assert response.json() == {"title": "Hello"}
    assert response.headers["content-type"].startswith("application/json")


def test_status_and_location(client):
    response = client.get("/posts/create", follow_redirects=False)

    assert response.status_code == 201
    assert response.headers["location"] == "/posts/1"
    assert response.text == "created"


def test_missing_template_is_404(client):
    response = client.get("/posts/missing")

    assert response.status_code == 404
    error = response.json()["error"]
    assert error["code"] == "TEMPLATE_NOT_FOUND"
    assert error["message"].endswith("posts/missing.html.*")
    assert error["details"]["location"].endswith("posts/missing.html")


def test_not_acceptable_is_406(client):
    response = client.get("/posts/show", params={"format": "xml"})

    assert response.status_code == 406
    error = response.json()["error"]
    assert error["code"] == "NOT_ACCEPTABLE"
    assert "to_xml" in error["message"]


def test_unprovided_accept_is_406(client):
    response = client.get("/posts", headers={"Accept": "image/png"})

    assert response.status_code == 406


def test_error_as_html_for_browsers(client):
    response = client.get("/posts/missing", headers={"Accept": "text/html,application/xhtml+xml,*/*;q=0.8"})

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("text/html")
    assert "<h1>404 TEMPLATE_NOT_FOUND</h1>" in response.text


def test_error_as_plain_text(client):
    response = client.get("/posts/missing", headers={"Accept": "text/plain"})

    assert response.status_code == 404
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text.startswith("TEMPLATE_NOT_FOUND: No template found at ")


def test_error_message_is_escaped_in_html(views):
    class Broken(Controller):
        def index(self):
            return self.render(location=["<b>"])

    Broken.set_template_roots([views])
    app = create_app([("/broken", Broken, "index")])

    with TestClient(app) as test_client:
        response = test_client.get("/broken", headers={"Accept": "text/html"})

    assert response.status_code == 500
    assert "&lt;b&gt;" in response.text
    assert "<b>" not in response.text


def test_unhandled_error_hides_details():
    class Crashing(Controller):
        def index(self):
            raise RuntimeError("secret detail")

    app = create_app([("/crash", Crashing, "index")])

    with TestClient(app, raise_server_exceptions=False) as test_client:
        response = test_client.get("/crash")

    assert response.status_code == 500
    assert response.json()["error"]["code"] == "INTERNAL_ERROR"
    assert "secret detail" not in response.text
