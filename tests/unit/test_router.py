"""
Unit tests for routing and the note handlers.
"""

import json
import os

import pytest

from pyne.handlers import ListHandler, parse_u16
from pyne.http.request import HTTPRequest, Method
from pyne.http.response import HTTPResponse, ok
from pyne.http.router import Route, Router
from pyne.http.status_codes import ContentType, HTTPStatus
from pyne.routes import create_router, evaluate
from pyne.store import NoteStore

from conftest import make_request


CONTEXT_PREFIX = "500 Internal Server Error\r\n\r\n"


def context_of(response: HTTPResponse) -> str:
    """The context message of a 500-with-context response."""
    assert response.status == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.body.startswith(CONTEXT_PREFIX)
    return response.body[len(CONTEXT_PREFIX):]


def echo_handler(request: HTTPRequest) -> HTTPResponse:
    return ok(request.path)


class TestRouter:
    """Tests for the generic prefix router."""

    def test_add_route(self):
        router = Router()
        route = router.add_route("/notes", echo_handler)

        assert router.routes == [route]
        assert route.pattern == "/notes"
        assert not route.exact

    def test_prefix_match(self):
        """Test prefix routes match anything that starts with them."""
        route = Route("/notes", echo_handler)

        assert route.matches("/notes")
        assert route.matches("/notes/a/b")
        assert route.matches("/notesfoo")
        assert not route.matches("/note")

    def test_exact_match(self):
        route = Route("/status", echo_handler, exact=True)

        assert route.matches("/status")
        assert not route.matches("/status/")
        assert not route.matches("/statusx")

    def test_first_match_wins(self):
        """Test registration order is priority."""
        first = lambda request: ok("first")
        second = lambda request: ok("second")

        router = Router()
        router.add_route("/a", first)
        router.add_route("/a/b", second)

        assert router.handle(make_request(Method.GET, "/a/b")).body == "first"

    def test_no_match_is_404(self):
        router = Router()
        router.add_route("/notes", echo_handler)

        response = router.handle(make_request(Method.GET, "/nope"))

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body == "404 Not Found"


class TestRoutingTable:
    """Tests for the notes server's routes."""

    def test_status(self, notes_dir):
        """Test /status answers 200 with no body."""
        response = evaluate(make_request(Method.GET, "/status"), notes_dir)

        assert response.status == HTTPStatus.OK
        assert response.body is None

    def test_status_any_method(self, notes_dir):
        response = evaluate(make_request(Method.UNKNOWN, "/status"), notes_dir)
        assert response.status == HTTPStatus.OK

    def test_status_must_be_exact(self, notes_dir):
        response = evaluate(make_request(Method.GET, "/status/extra"), notes_dir)
        assert response.status == HTTPStatus.NOT_FOUND

    def test_unknown_path(self, notes_dir):
        response = evaluate(make_request(Method.GET, "/nope"), notes_dir)
        assert response.status == HTTPStatus.NOT_FOUND

    def test_notes_take_priority_over_list(self, notes_dir):
        """Test /notes/list is a note, not a listing."""
        (notes_dir / "list").write_text("a note called list")

        response = evaluate(make_request(Method.GET, "/notes/list"), notes_dir)

        assert response.status == HTTPStatus.OK
        assert response.body == "a note called list"

    def test_routes_registered(self, notes_dir):
        router = create_router(NoteStore(notes_dir))
        assert [route.pattern for route in router.routes] == ["/notes", "/list", "/status"]


class TestNotesHandler:
    """Tests for /notes read, write and delete."""

    def test_round_trip(self, notes_dir):
        """Test a written note reads back unchanged."""
        post = evaluate(make_request(Method.POST, "/notes/todo", body="buy milk"), notes_dir)
        get = evaluate(make_request(Method.GET, "/notes/todo"), notes_dir)

        assert post.status == HTTPStatus.OK
        assert post.body == "buy milk"
        assert get.status == HTTPStatus.OK
        assert get.body == "buy milk"
        assert get.content_type == ContentType.TEXT

    def test_overwrite(self, notes_dir):
        evaluate(make_request(Method.POST, "/notes/n", body="old"), notes_dir)
        evaluate(make_request(Method.POST, "/notes/n", body="new"), notes_dir)

        assert (notes_dir / "n").read_text() == "new"

    def test_read_missing(self, notes_dir):
        response = evaluate(make_request(Method.GET, "/notes/missing"), notes_dir)

        assert response.status == HTTPStatus.NOT_FOUND
        assert response.body == "404 Not Found"

    def test_delete_twice(self, notes_dir):
        """Test the second delete of a note is 404."""
        (notes_dir / "n").write_text("x")

        first = evaluate(make_request(Method.DELETE, "/notes/n"), notes_dir)
        second = evaluate(make_request(Method.DELETE, "/notes/n"), notes_dir)

        assert first.status == HTTPStatus.OK
        assert first.body is None
        assert second.status == HTTPStatus.NOT_FOUND
        assert not (notes_dir / "n").exists()

    @pytest.mark.parametrize("method", [Method.GET, Method.POST, Method.DELETE])
    def test_traversal_rejected(self, tmp_path, notes_dir, method):
        """Test '..' is refused for every method and nothing escapes the root."""
        outside = tmp_path / "x"
        outside.write_text("outside")

        response = evaluate(make_request(method, "/notes/../x", body="pwned"), notes_dir)

        assert context_of(response) == "'..' is not allowed in note paths."
        assert outside.read_text() == "outside"

    def test_write_into_missing_directory(self, notes_dir):
        """Test a failed write reports the save failure."""
        response = evaluate(make_request(Method.POST, "/notes/no/such/dir", body="x"), notes_dir)
        assert context_of(response) == "Failed to save note file."

    def test_delete_symlink_keeps_target(self, notes_dir):
        (notes_dir / "real").write_text("keep me")
        os.symlink(notes_dir / "real", notes_dir / "alias")

        response = evaluate(make_request(Method.DELETE, "/notes/alias"), notes_dir)

        assert response.status == HTTPStatus.OK
        assert (notes_dir / "real").read_text() == "keep me"
        assert not os.path.lexists(notes_dir / "alias")

    def test_null_byte_in_path(self, notes_dir):
        """Test a path the OS cannot name maps to the normal note errors."""
        get = evaluate(make_request(Method.GET, "/notes/a\x00b"), notes_dir)
        post = evaluate(make_request(Method.POST, "/notes/a\x00b", body="x"), notes_dir)
        delete = evaluate(make_request(Method.DELETE, "/notes/a\x00b"), notes_dir)

        assert get.status == HTTPStatus.NOT_FOUND
        assert context_of(post) == "Failed to save note file."
        assert context_of(delete)

    def test_unknown_method(self, notes_dir):
        (notes_dir / "n").write_text("x")

        response = evaluate(make_request(Method.UNKNOWN, "/notes/n"), notes_dir)

        assert response.status == HTTPStatus.NOT_FOUND
        assert (notes_dir / "n").exists()


class TestListHandler:
    """Tests for /list?<start>:<end>."""

    @pytest.fixture
    def populated(self, notes_dir):
        for name in ["c.txt", "a.txt", "b.txt"]:
            (notes_dir / name).write_text(name)
        return notes_dir

    def test_sorted_listing(self, populated):
        response = evaluate(make_request(Method.GET, "/list?0:10"), populated)

        assert response.status == HTTPStatus.OK
        assert response.content_type == ContentType.JSON
        assert json.loads(response.body) == ["a.txt", "b.txt", "c.txt"]

    def test_half_open_range(self, populated):
        """Test at most end - start names come back."""
        response = evaluate(make_request(Method.GET, "/list?0:2"), populated)
        assert json.loads(response.body) == ["a.txt", "b.txt"]

        response = evaluate(make_request(Method.GET, "/list?1:2"), populated)
        assert json.loads(response.body) == ["b.txt"]

    def test_empty_range(self, populated):
        response = evaluate(make_request(Method.GET, "/list?1:1"), populated)
        assert json.loads(response.body) == []

    def test_empty_directory(self, notes_dir):
        response = evaluate(make_request(Method.GET, "/list?0:5"), notes_dir)
        assert json.loads(response.body) == []

    @pytest.mark.parametrize("path,message", [
        ("/list", "Missing query string '?<start>:<end>'"),
        ("/list?", "Missing query string '?<start>:<end>'"),
        ("/list?:5", "Missing start bounds '?<start>:<end>'"),
        ("/list?5", "Missing end bounds '?<start>:<end>'"),
        ("/list?5:", "Missing end bounds '?<start>:<end>'"),
        ("/list?x:5", "Start bounds is not a valid number"),
        ("/list?-1:5", "Start bounds is not a valid number"),
        ("/list?0:y", "End bounds is not a valid number"),
        ("/list?0:70000", "End bounds is not a valid number"),
        ("/list?2:1", "Start of the bounds is bigger then the end"),
    ])
    def test_bad_bounds(self, notes_dir, path, message):
        """Test every failed check has its own message."""
        response = evaluate(make_request(Method.GET, path), notes_dir)
        assert context_of(response) == message

    def test_extra_tokens_ignored(self, populated):
        response = evaluate(make_request(Method.GET, "/list?0:1:9"), populated)
        assert json.loads(response.body) == ["a.txt"]

    def test_parse_bounds(self, notes_dir):
        handler = ListHandler(NoteStore(notes_dir))
        assert handler.parse_bounds("/list?3:65535") == (3, 65535)


class TestParseU16:
    """Tests for parse_u16."""

    @pytest.mark.parametrize("text,expected", [
        ("0", 0),
        ("42", 42),
        ("+7", 7),
        ("65535", 65535),
        ("65536", None),
        ("", None),
        ("-1", None),
        ("1.5", None),
        (" 1", None),
        ("٣", None),
    ])
    def test_values(self, text, expected):
        assert parse_u16(text) == expected
