import logging
from typing import Any, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from .models import (
    Card,
    Lesson,
    LessonCreated,
    LessonCreateParams,
    LessonStats,
    LessonWords,
    Sentence,
    TTSResult,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

# Sent as X-Lingq-App. The service rejects stale versions with 401/403/400,
# so bump this to whatever the web app currently sends when that happens.
CLIENT_VERSION = "Web/5.3.38"

BASE_URL = "https://www.lingq.com"
LESSON_URL = BASE_URL + "/api/v3/{language}/lessons/{lesson}"
LESSON_CREATE_URL = BASE_URL + "/api/v3/{language}/lessons/import/"
LESSON_DELETE_URL = BASE_URL + "/api/v3/{language}/lessons/{lesson}/?context={context}"
LESSON_STATS_URL = BASE_URL + "/api/v2/{language}/lessons/{lesson}/stats/"
CARD_URL = BASE_URL + "/api/v3/{language}/cards/{card}/"
BOOKMARK_URL = BASE_URL + "/api/v3/{language}/lessons/{lesson}/bookmark/"
TTS_URL = BASE_URL + "/api/v3/tts/"
REFERER_URL = BASE_URL + "/en/learn/{language}/web/editor/{lesson}"

# Observed in the web app's delete request; meaning unknown, sent unchanged.
LESSON_DELETE_CONTEXT = 2
TTS_APP_NAME = "lingq"
REQUEST_TIMEOUT = 15.0

CSRF_COOKIE = "csrftoken"
SESSION_COOKIE = "wwwlingqcomsa"

COMMON_HEADERS = {
    "Accept": "application/json",
    "Priority": "u=1, i",
    "Sec-CH-UA": '"Google Chrome";v="131", "Chromium";v="131", "Not_A Brand";v="24"',
    "Sec-CH-UA-Mobile": "?0",
    "Sec-CH-UA-Platform": '"macOS"',
    "Sec-Fetch-Dest": "empty",
    "Sec-Fetch-Mode": "cors",
    "Sec-Fetch-Site": "same-origin",
    "X-Lingq-App": CLIENT_VERSION,
    "Referrer-Policy": "strict-origin-when-cross-origin",
}


class LingQError(RuntimeError):
    """Raised when a LingQ operation cannot be completed."""


class ConfigError(LingQError):
    """Raised when the session configuration is missing or malformed."""


class LingQHTTPError(LingQError):
    """The service answered with a non-2xx status."""

    def __init__(self, operation: str, status_code: int | None = None, response_text: str = ""):
        self.operation = operation
        self.status_code = status_code
        self.response_text = response_text
        message = f"{operation} failed (status={status_code})"
        if response_text:
            message = f"{message}: {response_text[:300]}"
        super().__init__(message)


class LessonNotFoundError(LingQHTTPError):
    """The requested lesson could not be fetched."""


class LessonCreationError(LingQHTTPError):
    """The service refused to create a lesson."""


class InvalidResponseError(LingQError):
    """The response body does not have the shape the client expects.

    Usually means the private API changed; never retried or ignored.
    """

    def __init__(self, operation: str, detail: str):
        self.operation = operation
        self.detail = detail
        super().__init__(f"{operation} returned an unexpected response shape: {detail}")


def parse_cookie_string(raw: str) -> dict[str, str]:
    cookies: dict[str, str] = {}
    for part in raw.split(";"):
        part = part.strip()
        if not part or "=" not in part:
            continue
        name, value = part.split("=", 1)
        cookies[name.strip()] = value.strip()
    return cookies


def describe_request_error(exc: httpx.RequestError | LingQError) -> str:
    if isinstance(exc, LingQHTTPError) and exc.status_code is not None:
        described = f"{exc.operation} → HTTP {exc.status_code}"
        if exc.response_text:
            described = f"{described}: {exc.response_text[:300]}"
        return described
    if isinstance(exc, httpx.RequestError):
        return f"{type(exc).__name__}: {exc}"
    return str(exc)


def validate_response(model: Type[ModelT], data: Any, operation: str) -> ModelT:
    """Validate decoded JSON against ``model`` or raise InvalidResponseError."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise InvalidResponseError(operation, str(exc)) from exc


def _check_index(index: int) -> None:
    if index < 1:
        raise ValueError(f"Sentence index starts at 1, got {index}")


class LingQClient:
    """Async client for the LingQ web app's private API.

    Authenticates with a captured ``csrftoken`` cookie and session id. The
    current lesson (``lesson_code``) is instance state that several calls read
    and a few change, so one instance must not be shared by overlapping
    requests; use one client per sequential caller.
    """

    def __init__(
        self,
        language_code: str,
        lesson_code: int,
        csrf_token: str,
        session_id: str,
    ):
        if not csrf_token or not session_id:
            raise LingQError("LingQ CSRF token and session id are required.")

        self.client: httpx.AsyncClient | None = None
        self.language_code = language_code
        self.lesson_code = int(lesson_code)
        self.csrf_token = csrf_token
        self.session_id = session_id
        self.common_headers = COMMON_HEADERS.copy()

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close the HTTP client."""
        if self.client:
            await self.client.aclose()
            self.client = None

    async def _ensure_client(self) -> None:
        """Ensure the HTTP client is initialized."""
        if self.client is None:
            self.client = httpx.AsyncClient(timeout=REQUEST_TIMEOUT, follow_redirects=True)

    def switch_lesson(self, lesson_id: int) -> None:
        if lesson_id != self.lesson_code:
            logger.info(f"[CLIENT] Switching current lesson {self.lesson_code} → {lesson_id}")
        self.lesson_code = int(lesson_id)

    def build_headers(self, *, is_post: bool = False, include_csrf: bool = False) -> dict[str, str]:
        headers = self.common_headers.copy()
        headers["Referer"] = REFERER_URL.format(language=self.language_code, lesson=self.lesson_code)
        headers["Cookie"] = f"{CSRF_COOKIE}={self.csrf_token}; {SESSION_COOKIE}={self.session_id};"
        if is_post:
            headers["Content-Type"] = "application/json"
        if include_csrf:
            headers["X-CSRFToken"] = self.csrf_token
        return headers

    def base_url(self) -> str:
        return LESSON_URL.format(language=self.language_code, lesson=self.lesson_code)

    def editor_url(self) -> str:
        return f"{self.base_url()}/editor/"

    def words_url(self) -> str:
        return f"{self.base_url()}/words/"

    def sentences_url(self) -> str:
        return f"{self.base_url()}/sentences/"

    async def _request(
        self,
        method: str,
        url: str,
        *,
        json: dict[str, Any] | None = None,
        include_csrf: bool = False,
    ) -> httpx.Response:
        await self._ensure_client()
        headers = self.build_headers(is_post=json is not None, include_csrf=include_csrf)
        logger.debug(f"[API] {method} {url} payload={json}")
        response = await self.client.request(method, url, json=json, headers=headers)
        logger.debug(f"[API] {method} {url} → {response.status_code}")
        return response

    def _raise_for_status(
        self,
        response: httpx.Response,
        operation: str,
        error_cls: Type[LingQHTTPError] = LingQHTTPError,
    ) -> None:
        if response.is_success:
            return
        logger.warning(f"[API] {operation} returned status {response.status_code}")
        raise error_cls(operation, response.status_code, response.text)

    def _decode(self, response: httpx.Response, model: Type[ModelT], operation: str) -> ModelT:
        try:
            data = response.json()
        except ValueError as exc:
            raise InvalidResponseError(operation, f"body is not JSON: {response.text[:200]!r}") from exc
        return validate_response(model, data, operation)

    async def get_lesson(self, lesson_id: int | None = None) -> Lesson:
        """Fetch the editor view of a lesson.

        Passing ``lesson_id`` makes it the current lesson before fetching.
        """
        if lesson_id is not None:
            self.switch_lesson(lesson_id)
        response = await self._request("GET", self.editor_url())
        self._raise_for_status(response, f"get lesson {self.lesson_code}", LessonNotFoundError)
        return self._decode(response, Lesson, "get lesson")

    async def create_lesson(
        self,
        params: LessonCreateParams | dict[str, Any],
        *,
        switch: bool = True,
    ) -> LessonCreated:
        """Create a lesson and, by default, make it the current lesson."""
        if not isinstance(params, LessonCreateParams):
            params = LessonCreateParams.model_validate(params)
        url = LESSON_CREATE_URL.format(language=self.language_code)
        response = await self._request("POST", url, json=params.to_payload(), include_csrf=True)
        self._raise_for_status(response, "create lesson", LessonCreationError)
        created = self._decode(response, LessonCreated, "create lesson")
        logger.info(f"[CLIENT] Created lesson {created.id} ('{params.title}')")
        if switch:
            self.switch_lesson(created.id)
        return created

    async def delete_lesson(self, lesson_id: int) -> httpx.Response:
        """Delete a lesson. The raw response is returned; check ``is_success``."""
        url = LESSON_DELETE_URL.format(
            language=self.language_code,
            lesson=lesson_id,
            context=LESSON_DELETE_CONTEXT,
        )
        response = await self._request("DELETE", url, include_csrf=True)
        logger.info(f"[CLIENT] Delete lesson {lesson_id} → {response.status_code}")
        return response

    async def increment_lesson_stats(
        self,
        *,
        listen_times: float = 0,
        read_times: float = 0,
        is_automatic: bool = False,
        source: str = "web",
        lesson_id: int | None = None,
    ) -> LessonStats:
        lesson = self.lesson_code if lesson_id is None else lesson_id
        url = LESSON_STATS_URL.format(language=self.language_code, lesson=lesson)
        payload = {
            "listenTimes": listen_times,
            "readTimes": read_times,
            "isAutomatic": is_automatic,
            "source": source,
        }
        response = await self._request("POST", url, json=payload, include_csrf=True)
        self._raise_for_status(response, f"increment stats of lesson {lesson}")
        return self._decode(response, LessonStats, "increment lesson stats")

    async def increment_read_times(
        self, amount: float = 1, *, is_automatic: bool = False, source: str = "web"
    ) -> LessonStats:
        return await self.increment_lesson_stats(read_times=amount, is_automatic=is_automatic, source=source)

    async def increment_listen_times(
        self, amount: float = 1, *, is_automatic: bool = False, source: str = "web"
    ) -> LessonStats:
        return await self.increment_lesson_stats(listen_times=amount, is_automatic=is_automatic, source=source)

    async def update_card_status(
        self,
        card_id: int,
        status: int,
        *,
        content_id: int | None = None,
        extended_status: int | None = None,
    ) -> Card:
        url = CARD_URL.format(language=self.language_code, card=card_id)
        payload: dict[str, Any] = {"status": status}
        if extended_status is not None:
            payload["extended_status"] = extended_status
        if content_id is not None:
            payload["content_id"] = content_id
        response = await self._request("PATCH", url, json=payload, include_csrf=True)
        self._raise_for_status(response, f"update card {card_id}")
        return self._decode(response, Card, "update card status")

    async def create_bookmark(self, word_index: int, *, client_tag: str = "web") -> bool:
        url = BOOKMARK_URL.format(language=self.language_code, lesson=self.lesson_code)
        payload = {"wordIndex": word_index, "client": client_tag}
        response = await self._request("POST", url, json=payload, include_csrf=True)
        self._raise_for_status(response, f"bookmark word {word_index}")
        return True

    async def get_lesson_words(self) -> LessonWords:
        """Cards and words of the current lesson, as two id-keyed mappings."""
        response = await self._request("GET", self.words_url())
        self._raise_for_status(response, f"get words of lesson {self.lesson_code}")
        return self._decode(response, LessonWords, "get lesson words")

    async def _post_sentences(self, body: dict[str, Any], operation: str) -> httpx.Response:
        response = await self._request("POST", self.sentences_url(), json=body, include_csrf=True)
        self._raise_for_status(response, operation)
        return response

    async def create_sentence(self, index: int, text: str, after: bool = False) -> Sentence:
        """Insert a sentence.

        Args:
            index: 1-based position. With ``after=False`` the new sentence takes
                this index and the current one moves forward.
            text: Sentence text.
            after: Insert after ``index`` instead.
        """
        _check_index(index)
        body = {"action": "create", "index": index, "text": text, "after": after, "lone": False}
        response = await self._post_sentences(body, f"create sentence at {index}")
        return self._decode(response, Sentence, "create sentence")

    async def update_sentence_text(self, index: int, text: str) -> Sentence:
        _check_index(index)
        body = {"action": "update", "index": index, "text": text, "lone": False}
        response = await self._post_sentences(body, f"update text of sentence {index}")
        return self._decode(response, Sentence, "update sentence text")

    async def update_sentence_timestamp(
        self,
        index: int,
        timestamp: tuple[float | None, float | None],
    ) -> Sentence:
        _check_index(index)
        body = {"action": "update", "index": index, "timestamp": list(timestamp), "lone": False}
        response = await self._post_sentences(body, f"update timestamp of sentence {index}")
        return self._decode(response, Sentence, "update sentence timestamp")

    async def delete_sentence(self, index: int) -> httpx.Response:
        # no response body on success
        _check_index(index)
        return await self._post_sentences({"action": "delete", "index": index}, f"delete sentence {index}")

    async def break_sentence(self, index: int) -> httpx.Response:
        _check_index(index)
        return await self._post_sentences({"action": "break", "index": index}, f"break sentence {index}")

    async def get_tts(
        self,
        text: str,
        voice: str,
        *,
        app_name: str | None = None,
        language: str | None = None,
    ) -> TTSResult:
        payload = {
            "text": text,
            "voice": voice,
            "language": language or self.language_code,
            "appName": app_name or TTS_APP_NAME,
        }
        response = await self._request("POST", TTS_URL, json=payload, include_csrf=True)
        self._raise_for_status(response, "get tts")
        return self._decode(response, TTSResult, "get tts")
