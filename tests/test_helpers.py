"""Tests for helper functions in lingq.client and the response models."""

import httpx
import pytest

from lingq.client import (
    ConfigError,
    InvalidResponseError,
    LingQHTTPError,
    describe_request_error,
    parse_cookie_string,
    validate_response,
)
from lingq.models import Lesson, LessonCreateParams, LessonWords, Sentence

from .fixtures.mock_responses import mock_lesson, mock_lesson_words, mock_sentence


class TestParseCookieString:
    """Tests for parse_cookie_string function."""

    def test_parse_browser_cookie_string(self):
        """Test parsing a cookie string copied from the browser."""
        cookie_string = "csrftoken=TKN; wwwlingqcomsa=SID; _ga=GA1.2.3"
        result = parse_cookie_string(cookie_string)
        assert result == {
            "csrftoken": "TKN",
            "wwwlingqcomsa": "SID",
            "_ga": "GA1.2.3",
        }

    def test_parse_cookie_string_with_spaces(self):
        """Test parsing cookie string with spaces."""
        result = parse_cookie_string("csrftoken = TKN ; wwwlingqcomsa = SID")
        assert result == {"csrftoken": "TKN", "wwwlingqcomsa": "SID"}

    def test_parse_empty_string(self):
        """Test parsing empty string."""
        assert parse_cookie_string("") == {}

    def test_parse_cookie_string_with_empty_parts(self):
        """Test parsing cookie string with empty parts and values containing '='."""
        result = parse_cookie_string("csrftoken=TKN;;token=a=b;")
        assert result == {"csrftoken": "TKN", "token": "a=b"}


class TestDescribeRequestError:
    """Tests for describe_request_error function."""

    def test_describe_lingq_http_error(self):
        """Test client HTTP errors show operation, status and body."""
        exc = LingQHTTPError("get lesson 4242", 404, "Not found.")
        assert describe_request_error(exc) == "get lesson 4242 → HTTP 404: Not found."

    def test_describe_lingq_http_error_without_body(self):
        """Test an empty body leaves only operation and status."""
        exc = LingQHTTPError("delete sentence 1", 500)
        assert describe_request_error(exc) == "delete sentence 1 → HTTP 500"

    def test_describe_transport_error(self):
        """Test network errors name their type."""
        assert describe_request_error(httpx.ConnectError("unreachable")) == "ConnectError: unreachable"

    def test_describe_config_error(self):
        """Test other client errors fall back to their message."""
        assert describe_request_error(ConfigError("Missing LingQ settings: SESSION_ID")) == (
            "Missing LingQ settings: SESSION_ID"
        )


class TestValidateResponse:
    """Tests for validate_response and the response models."""

    def test_valid_lesson(self):
        """Test a full lesson validates and keeps unknown fields."""
        lesson = validate_response(Lesson, mock_lesson(4242), "get lesson")
        assert lesson.id == 4242
        assert lesson.collection.lessons_count == 1
        assert lesson.model_extra["accent"] is None

    def test_paragraph_without_sentences(self):
        """Test paragraphs must carry a sentence sequence."""
        data = mock_lesson()
        data["paragraphs"][0]["sentences"] = "Initial text"
        with pytest.raises(InvalidResponseError) as exc_info:
            validate_response(Lesson, data, "get lesson")
        assert exc_info.value.operation == "get lesson"

    def test_unknown_status_rejected(self):
        """Test lesson status is limited to private and public."""
        data = mock_lesson()
        data["status"] = "archived"
        with pytest.raises(InvalidResponseError):
            validate_response(Lesson, data, "get lesson")

    def test_sentence_index_is_one_based(self):
        """Test a zero sentence index is an invalid shape."""
        with pytest.raises(InvalidResponseError):
            validate_response(Sentence, mock_sentence(index=0), "create sentence")

    def test_sentence_partial_timestamp(self):
        """Test either side of a timestamp may be null."""
        data = mock_sentence()
        data["timestamp"] = [1.5, None]
        assert validate_response(Sentence, data, "update sentence timestamp").timestamp == (1.5, None)

    def test_words_keys_are_opaque_strings(self):
        """Test numeric mapping keys are preserved as strings."""
        data = mock_lesson_words()
        data["words"] = {17: data["words"]["17"]}
        words = validate_response(LessonWords, data, "get lesson words")
        assert list(words.words) == ["17"]

    def test_not_a_mapping(self):
        """Test a list where a mapping is expected is rejected."""
        with pytest.raises(InvalidResponseError):
            validate_response(LessonWords, [], "get lesson words")


class TestLessonCreateParams:
    """Tests for the lesson creation payload."""

    def test_payload_uses_wire_names(self):
        """Test defaults and camelCase keys of the payload."""
        payload = LessonCreateParams(title="Test Lesson", text="Initial text", language="he").to_payload()
        assert payload == {
            "title": "Test Lesson",
            "text": "Initial text",
            "language": "he",
            "status": "private",
            "description": "",
            "isHidden": True,
            "isProtected": False,
            "hasPrice": False,
            "groups": [],
            "tags": [],
            "translations": [],
            "notes": "",
            "save": True,
        }
