"""
Unit tests for request parsing.
"""

import pytest

from pyne.errors import InvalidEncodingError, ProtocolError, RequestTooLargeError
from pyne.http.request import HTTPRequest, Method, RequestParser, parse_request


class TestMethod:
    """Tests for method selection."""

    @pytest.mark.parametrize("line,expected", [
        ("GET /notes/a HTTP/1.1", Method.GET),
        ("POST /notes/a HTTP/1.1", Method.POST),
        ("DELETE /notes/a HTTP/1.1", Method.DELETE),
        ("PUT /notes/a HTTP/1.1", Method.UNKNOWN),
        ("", Method.UNKNOWN),
    ])
    def test_from_request_line(self, line, expected):
        """Test the method is picked from the start of the line."""
        assert Method.from_request_line(line) is expected

    def test_prefix_match(self):
        """Test a token that merely starts with a method name still matches."""
        assert Method.from_request_line("GETX /status") is Method.GET
        assert Method.from_request_line("get /status") is Method.UNKNOWN


class TestRequestParser:
    """Tests for RequestParser."""

    def test_parse_simple_get(self):
        """Test parsing a GET with CRLF line endings."""
        data = b"GET /notes/todo HTTP/1.1\r\nAuthorization: abc\r\n\r\n"
        request = parse_request(data)

        assert request.method is Method.GET
        assert request.path == "/notes/todo"
        assert request.headers == {"Authorization": " abc\r"}
        assert request.body == ""

    def test_parse_post_with_body(self):
        """Test the body is everything after the blank line."""
        data = b"POST /notes/n HTTP/1.1\nAuthorization: s\n\nline one\nline two\n"
        request = parse_request(data)

        assert request.method is Method.POST
        assert request.body == "line one\nline two\n"

    def test_body_with_multibyte_characters(self):
        """Test the body offset is computed in bytes."""
        data = "POST /notes/ü HTTP/1.1\nX-Name: ünïcode\n\nhéllo".encode("utf-8")
        request = parse_request(data)

        assert request.path == "/notes/ü"
        assert request.headers["X-Name"] == " ünïcode"
        assert request.body == "héllo"

    def test_header_values_are_raw(self):
        """Test values keep their leading space and trailing carriage return."""
        request = parse_request(b"GET / HTTP/1.1\r\nHost:  example \r\n\r\n")
        assert request.headers["Host"] == "  example \r"

    def test_header_names_are_case_sensitive(self):
        """Test names are stored exactly as received."""
        request = parse_request(b"GET / HTTP/1.1\nauthorization: x\n\n")

        assert request.get_header("authorization") == " x"
        assert request.get_header("Authorization") is None

    def test_duplicate_headers_last_wins(self):
        """Test the last occurrence of a header wins."""
        request = parse_request(b"GET / HTTP/1.1\nX-A: 1\nX-A: 2\n\n")
        assert request.headers["X-A"] == " 2"

    def test_header_split_on_first_colon(self):
        """Test only the first colon separates name from value."""
        request = parse_request(b"GET / HTTP/1.1\nX-Time: 12:30:00\n\n")
        assert request.headers["X-Time"] == " 12:30:00"

    def test_lines_without_colon_are_skipped(self):
        """Test malformed header lines are ignored."""
        request = parse_request(b"GET / HTTP/1.1\nnot a header\nX-A: 1\n\n")
        assert request.headers == {"X-A": " 1"}

    def test_request_line_is_not_a_header(self):
        """Test a colon in the request line does not create a header."""
        request = parse_request(b"GET /list?0:5 HTTP/1.1\n\n")

        assert request.path == "/list?0:5"
        assert request.headers == {}

    def test_default_path(self):
        """Test a request line without a path defaults to '/'."""
        request = parse_request(b"GET\n\n")

        assert request.method is Method.GET
        assert request.path == "/"

    def test_no_blank_line(self):
        """Test a request without a header terminator has an empty body."""
        request = parse_request(b"GET /status HTTP/1.1\nAuthorization: s")

        assert request.path == "/status"
        assert request.headers == {"Authorization": " s"}
        assert request.body == ""

    def test_empty_request(self):
        """Test empty input gives an UNKNOWN request for '/'."""
        request = parse_request(b"")

        assert request.method is Method.UNKNOWN
        assert request.path == "/"

    def test_client_address(self):
        """Test the peer address is carried through."""
        request = parse_request(b"GET / HTTP/1.1\n\n", client_address=("127.0.0.1", 5000))
        assert request.client_address == ("127.0.0.1", 5000)

    def test_invalid_utf8(self):
        """Test non-UTF-8 input is a protocol error."""
        with pytest.raises(InvalidEncodingError):
            parse_request(b"GET /notes/\xff HTTP/1.1\n\n")

    def test_invalid_utf8_in_body(self):
        """Test bad bytes in the body are rejected too."""
        with pytest.raises(ProtocolError):
            parse_request(b"POST /notes/a HTTP/1.1\n\n\xc3\x28")

    def test_request_too_large(self):
        """Test the size limit."""
        parser = RequestParser(max_request_size=16)
        with pytest.raises(RequestTooLargeError):
            parser.parse(b"POST /notes/a HTTP/1.1\n\n" + b"x" * 100)


class TestHTTPRequest:
    """Tests for the request model."""

    def test_immutable(self):
        """Test requests cannot be modified after construction."""
        request = HTTPRequest(method=Method.GET, path="/status")
        with pytest.raises(AttributeError):
            request.path = "/other"

    def test_get_header_default(self):
        """Test the default for a missing header."""
        request = HTTPRequest(method=Method.GET)
        assert request.get_header("X-Missing", "none") == "none"
