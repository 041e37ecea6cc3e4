"""Tests for layout resolution."""

import pytest

from viewkit.exceptions import InvalidRenderOptionException, TemplateNotFoundException


@pytest.fixture
def controller(make_controller):
    return make_controller("Posts")(action_name="index")


def test_no_layouts_is_not_an_error(controller):
    assert controller.layout_resolver.resolve_layout() is None


def test_application_layout_fallback(controller, views, write_template):
    write_template(views, "layout/application.html.jinja", "app")

    layout = controller.layout_resolver.resolve_layout()

    assert layout.path == str(views / "layout/application.html.jinja")


def test_controller_layout_preferred(controller, views, write_template):
    write_template(views, "layout/application.html.jinja", "app")
    write_template(views, "layout/posts.html.jinja", "posts")

    assert controller.layout_resolver.resolve_layout().path == str(views / "layout/posts.html.jinja")


def test_explicit_layout(controller, views, write_template):
    write_template(views, "layout/admin.html.jinja", "admin")

    assert controller.layout_resolver.resolve_layout("admin").path == str(views / "layout/admin.html.jinja")


def test_explicit_layout_with_extension_skips_content_type(controller, views, write_template):
    write_template(views, "layout/print.txt.jinja", "print")

    assert controller.layout_resolver.resolve_layout("print.txt").path == str(views / "layout/print.txt.jinja")


def test_missing_explicit_layout_raises(controller, views, write_template):
    write_template(views, "layout/application.html.jinja", "app")

    with pytest.raises(TemplateNotFoundException) as exc_info:
        controller.layout_resolver.resolve_layout("admin")

    assert exc_info.value.location == str(views / "layout/admin.html")
    assert "No layout found at" in exc_info.value.message


def test_callable_layout(controller, views, write_template):
    write_template(views, "layout/admin.html.jinja", "admin")
    seen = []

    def choose(c):
        seen.append(c)
        return "admin"

    assert controller.layout_resolver.resolve_layout(choose).path.endswith("admin.html.jinja")
    assert seen == [controller]


def test_callable_layout_is_one_level(controller):
    with pytest.raises(InvalidRenderOptionException):
        controller.layout_resolver.resolve_layout(lambda c: lambda c: "admin")


def test_layout_dir_from_settings(make_controller, views, write_template, monkeypatch):
    monkeypatch.setenv("VIEWKIT_LAYOUT_DIR", "layouts")
    monkeypatch.setenv("VIEWKIT_DEFAULT_LAYOUT", "site")
    write_template(views, "layouts/site.html.jinja", "site")

    controller = make_controller("Posts")()

    assert controller.layout_resolver.resolve_layout().path == str(views / "layouts/site.html.jinja")
