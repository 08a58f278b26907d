"""Tests for perch.server.negotiation: return values to responses."""

import io

import pytest

from perch.http.response import (
    FileResponse,
    MountedResponse,
    Redirect,
    Response,
    StreamingResponse,
)
from perch.server.negotiation import negotiate


class TestNegotiate:
    def test_string(self) -> None:
        response = negotiate("block tested")
        assert response.status == 200
        assert response.body == "block tested"
        assert response.content_type == "text/html; charset=utf-8"

    def test_bytes(self) -> None:
        response = negotiate(b"\x00")
        assert response.content_type == "application/octet-stream"

    def test_none_is_empty(self) -> None:
        response = negotiate(None)
        assert response.status == 200
        assert response.body == ""

    def test_dict_is_json(self) -> None:
        response = negotiate({"a": 1})
        assert response.content_type.startswith("application/json")
        assert response.body == '{"a": 1}'

    def test_list_is_json(self) -> None:
        assert negotiate([1, 2]).body == "[1, 2]"

    def test_response_passes_through(self) -> None:
        original = Response("x", status=418)
        assert negotiate(original) is original

    @pytest.mark.parametrize(
        "value",
        [
            StreamingResponse(chunks=iter(())),
            FileResponse(file=io.BytesIO(b"")),
            MountedResponse(app=object(), root_path="/sub", path="/sub/x"),
        ],
    )
    def test_other_responses_pass_through(self, value) -> None:
        assert negotiate(value) is value

    def test_redirect(self) -> None:
        response = negotiate(Redirect("/elsewhere", status=301))
        assert response.status == 301
        assert response.header("Location") == "/elsewhere"

    def test_status_tuple(self) -> None:
        response = negotiate(("nothing to see here", 404))
        assert response.status == 404
        assert response.body == "nothing to see here"

    def test_status_and_headers_tuple(self) -> None:
        response = negotiate(("made", 201, {"Location": "/things/1"}))
        assert response.status == 201
        assert response.header("location") == "/things/1"

    def test_unsupported_type(self) -> None:
        with pytest.raises(TypeError, match="Cannot convert"):
            negotiate(object())


class TestMountedResponse:
    def test_with_methods_are_noops(self) -> None:
        mounted = MountedResponse(app=object(), root_path="/sub", path="/sub/x")
        assert mounted.with_status(500) is mounted
        assert mounted.with_header("X", "1") is mounted
        assert mounted.with_headers({"X": "1"}) is mounted
        assert mounted.with_content_type("text/plain") is mounted
