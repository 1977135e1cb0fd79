"""Tests for the shipped response validators."""

import httpx
import pytest
from hypothesis import given
from hypothesis import strategies as st

from requestkit.errors import InvalidContentType, InvalidHTTPResponse, InvalidStatusCode
from requestkit.models import TransportResponse
from requestkit.validators import ContentTypeValidator, ResponseValidator, StatusCodeValidator


def make_response(status_code: int = 200, content_type: str | None = "application/json") -> TransportResponse:
    headers = {"content-type": [content_type]} if content_type is not None else {}
    return TransportResponse(status_code=status_code, headers=headers, url="https://example.com/")


class TestStatusCodeValidator:
    def test_is_response_validator(self):
        assert isinstance(StatusCodeValidator(), ResponseValidator)

    def test_default_range(self):
        assert StatusCodeValidator().valid_status_codes == range(200, 300)

    def test_valid_status_code(self):
        StatusCodeValidator().validate(make_response(200), b"{}", None)

    def test_valid_status_code_with_error(self):
        # A transport error alongside a response does not matter to this validator
        StatusCodeValidator().validate(make_response(204), None, RuntimeError("late failure"))

    def test_invalid_status_code(self):
        with pytest.raises(InvalidStatusCode) as exc_info:
            StatusCodeValidator().validate(make_response(300), None, None)
        assert exc_info.value.status_code == 300

    def test_no_response(self):
        with pytest.raises(InvalidHTTPResponse):
            StatusCodeValidator().validate(None, None, None)

    def test_no_response_with_error(self):
        with pytest.raises(InvalidHTTPResponse):
            StatusCodeValidator().validate(None, None, httpx.ReadTimeout("timed out"))

    @pytest.mark.parametrize("status_code,ok", [(199, False), (200, True), (299, True), (300, False)])
    def test_bounds(self, status_code, ok):
        validator = StatusCodeValidator()
        if ok:
            validator.validate(make_response(status_code), None, None)
        else:
            with pytest.raises(InvalidStatusCode):
                validator.validate(make_response(status_code), None, None)

    def test_custom_range(self):
        validator = StatusCodeValidator(range(200, 500))
        validator.validate(make_response(404), None, None)
        with pytest.raises(InvalidStatusCode):
            validator.validate(make_response(500), None, None)

    def test_tuple_range(self):
        validator = StatusCodeValidator((400, 500))
        assert validator.valid_status_codes == range(400, 500)
        validator.validate(make_response(418), None, None)

    def test_stepped_range_rejected(self):
        with pytest.raises(ValueError, match="step"):
            StatusCodeValidator(range(200, 300, 2))

    def test_empty_range_rejects_everything(self):
        with pytest.raises(InvalidStatusCode):
            StatusCodeValidator(range(200, 200)).validate(make_response(200), None, None)

    @given(
        lo=st.integers(min_value=100, max_value=599),
        width=st.integers(min_value=0, max_value=200),
        status_code=st.integers(min_value=100, max_value=599),
    )
    def test_accepts_exactly_the_range(self, lo, width, status_code):
        validator = StatusCodeValidator(range(lo, lo + width))
        response = make_response(status_code)
        if lo <= status_code < lo + width:
            validator.validate(response, None, None)
        else:
            with pytest.raises(InvalidStatusCode):
                validator.validate(response, None, None)


class TestContentTypeValidator:
    def test_is_response_validator(self):
        assert isinstance(ContentTypeValidator(), ResponseValidator)

    def test_accepts_json_by_default(self):
        ContentTypeValidator().validate(make_response(content_type="application/json"), b"{}", None)

    def test_ignores_parameters_and_case(self):
        ContentTypeValidator().validate(
            make_response(content_type="Application/JSON; charset=utf-8"), b"{}", None
        )

    def test_rejects_other_media_type(self):
        with pytest.raises(InvalidContentType) as exc_info:
            ContentTypeValidator().validate(make_response(content_type="text/html"), b"<html/>", None)
        assert exc_info.value.content_type == "text/html"

    def test_missing_content_type(self):
        with pytest.raises(InvalidContentType) as exc_info:
            ContentTypeValidator().validate(make_response(content_type=None), b"{}", None)
        assert exc_info.value.content_type is None

    def test_empty_body_passes(self):
        ContentTypeValidator().validate(make_response(204, content_type=None), None, None)
        ContentTypeValidator().validate(make_response(200, content_type="text/plain"), b"", None)

    def test_no_response(self):
        with pytest.raises(InvalidHTTPResponse):
            ContentTypeValidator().validate(None, None, None)

    def test_single_string(self):
        validator = ContentTypeValidator("text/plain")
        assert validator.accepted == ("text/plain",)
        validator.validate(make_response(content_type="text/plain"), b"hi", None)

    def test_wildcards(self):
        ContentTypeValidator(("application/*",)).validate(
            make_response(content_type="application/problem+json"), b"{}", None
        )
        ContentTypeValidator(("*/*",)).validate(make_response(content_type="image/png"), b"\x89PNG", None)
        with pytest.raises(InvalidContentType):
            ContentTypeValidator(("text/*",)).validate(
                make_response(content_type="application/json"), b"{}", None
            )
