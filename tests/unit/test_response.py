"""
Unit tests for HTTP response building.
"""

import io

import pytest

from httprouter.http.response import (
    HTTPResponse,
    bad_request,
    error_response,
    internal_error,
    not_found,
    text_response,
)
from httprouter.http.status_codes import HTTPStatus, reason_phrase


class TestHTTPResponse:
    """Tests for HTTPResponse class."""

    def test_default_response(self):
        """Test default response values."""
        response = HTTPResponse()

        assert response.status == 200
        assert response.headers == {}
        assert response.body == ""
        assert response.version == "HTTP/1.1"

    def test_status_line(self):
        """Test status line generation."""
        assert HTTPResponse(status=200).status_line == "HTTP/1.1 200 OK"
        assert HTTPResponse(status=404).status_line == "HTTP/1.1 404 Not Found"
        assert HTTPResponse(status=500).status_line == "HTTP/1.1 500 Internal Server Error"

    def test_fluent_setters_return_self(self):
        """Every setter returns the same response."""
        response = HTTPResponse()

        assert response.set_status(201) is response
        assert response.add_header("X-A", "1") is response
        assert response.set_body("hi") is response

    def test_serialize_with_body(self):
        """Test exact wire format with a body."""
        response = (HTTPResponse()
            .set_status(200)
            .add_header("Content-Type", "text/plain")
            .set_body("Hello, World!"))

        assert response.serialize() == (
            "HTTP/1.1 200 OK\r\n"
            "Content-Type: text/plain\r\n"
            "Content-Length: 13\r\n"
            "\r\n"
            "Hello, World!"
        )

    def test_serialize_without_body(self):
        """An empty body gets no Content-Length and a single blank line."""
        response = HTTPResponse(status=204)

        assert response.serialize() == "HTTP/1.1 204 OK\r\n\r\n"

    def test_serialize_headers_without_body(self):
        response = HTTPResponse().add_header("X-A", "1")

        assert response.serialize() == "HTTP/1.1 200 OK\r\nX-A: 1\r\n\r\n"

    def test_content_length_counts_bytes(self):
        """Content-Length is the UTF-8 byte length, not character count."""
        response = HTTPResponse().set_body("héllo")

        assert "Content-Length: 6\r\n" in response.serialize()
        assert response.to_bytes().endswith("héllo".encode("utf-8"))

    def test_manual_content_length_dropped(self):
        """A hand-set Content-Length never reaches the wire."""
        response = (HTTPResponse()
            .add_header("content-length", "999")
            .set_body("abc"))

        wire = response.serialize()
        assert "999" not in wire
        assert wire.count("Content-Length") == 1
        assert "Content-Length: 3\r\n" in wire

    def test_headers_in_insertion_order(self):
        response = (HTTPResponse()
            .add_header("B", "2")
            .add_header("A", "1")
            .set_body("x"))

        lines = response.serialize().split("\r\n")
        assert lines[1:4] == ["B: 2", "A: 1", "Content-Length: 1"]

    def test_add_header_overwrites(self):
        response = HTTPResponse().add_header("X-A", "1").add_header("X-A", "2")

        assert response.headers == {"X-A": "2"}

    def test_write_to(self):
        """write_to() writes the encoded response."""
        stream = io.BytesIO()
        text_response(200, "ok").write_to(stream)

        assert stream.getvalue() == text_response(200, "ok").to_bytes()


class TestResponseHelpers:
    """Tests for the convenience constructors."""

    def test_text_response(self):
        response = text_response(HTTPStatus.OK, "Hello")

        assert response.status == 200
        assert response.headers["Content-Type"] == "text/plain"
        assert response.body == "Hello"

    def test_text_response_content_type(self):
        response = text_response(200, "<p>", content_type="text/html")
        assert response.headers["Content-Type"] == "text/html"

    def test_error_response_closes(self):
        response = error_response(HTTPStatus.SERVICE_UNAVAILABLE, "busy")

        assert response.status == 503
        assert response.headers["Connection"] == "close"
        assert response.body == "busy"

    @pytest.mark.parametrize("factory,status", [
        (bad_request, 400),
        (not_found, 404),
        (internal_error, 500),
    ])
    def test_error_helpers(self, factory, status: int):
        response = factory()

        assert response.status == status
        assert response.body


class TestReasonPhrase:
    """Tests for reason_phrase()."""

    @pytest.mark.parametrize("code,phrase", [
        (200, "OK"),
        (201, "OK"),
        (299, "OK"),
        (301, "Redirect"),
        (404, "Not Found"),
        (400, "Client Error"),
        (418, "Client Error"),
        (500, "Internal Server Error"),
        (503, "Internal Server Error"),
        (100, "Unknown Status"),
        (600, "Unknown Status"),
    ])
    def test_phrases(self, code: int, phrase: str):
        assert reason_phrase(code) == phrase

    def test_enum_phrase(self):
        assert HTTPStatus.NOT_FOUND.phrase == "Not Found"
        assert HTTPStatus.REQUEST_TIMEOUT.phrase == "Client Error"
