"""Tests for the content store and render cycle."""

import pytest

from viewkit.content_store import FOR_LAYOUT, ContentStore, RenderCycle


class TestContentStore:
    """Tests for ContentStore."""

    def test_unwritten_key_is_absent(self):
        store = ContentStore()

        assert store.catch() is None
        assert store.catch("sidebar") is None
        assert store.has() is False

    def test_throw_then_catch(self):
        store = ContentStore()
        store.throw(FOR_LAYOUT, "<p>body</p>")

        assert store.catch() == "<p>body</p>"
        assert store.has(FOR_LAYOUT) is True

    def test_throw_overwrites(self):
        store = ContentStore()
        store.throw("x", "a")
        store.throw("x", "b")

        assert store.catch("x") == "b"

    def test_empty_string_is_present(self):
        store = ContentStore()
        store.throw("x", "")

        assert store.has("x") is True
        assert store.catch("x") == ""


class TestRenderCycle:
    """Tests for the partial locals stack."""

    def test_scope_restores_previous_frame(self):
        cycle = RenderCycle()
        cycle.partial_locals = {"outer": 1}

        with cycle.partial_scope():
            cycle.partial_locals = {"inner": 2}
            assert cycle.depth == 1

        assert cycle.partial_locals == {"outer": 1}
        assert cycle.depth == 0

    def test_scope_restores_frame_on_error(self):
        cycle = RenderCycle()
        cycle.partial_locals = {"outer": 1}

        with pytest.raises(RuntimeError):
            with cycle.partial_scope():
                cycle.partial_locals = {"inner": 2}
                raise RuntimeError("template failed")

        assert cycle.partial_locals == {"outer": 1}
        assert cycle.depth == 0

    def test_nested_scopes(self):
        cycle = RenderCycle()

        with cycle.partial_scope():
            cycle.partial_locals = {"level": 1}
            with cycle.partial_scope():
                cycle.partial_locals = {"level": 2}
                assert cycle.depth == 2
            assert cycle.partial_locals == {"level": 1}

        assert cycle.partial_locals == {}
