"""Session settings for scripts that drive the client."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .client import CSRF_COOKIE, SESSION_COOKIE, ConfigError, LingQClient, parse_cookie_string

ENV_LANGUAGE = "LANG_CODE"
ENV_LESSON = "LESSON_CODE"
ENV_CSRF = "CSRF_TOKEN"
ENV_SESSION = "SESSION_ID"
ENV_COOKIE = "LINGQ_COOKIE"


@dataclass
class Settings:
    language_code: str
    lesson_code: int
    csrf_token: str
    session_id: str

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        *,
        cookie_string: Optional[str] = None,
    ) -> "Settings":
        """Read the four session values from the environment.

        A raw browser cookie string (argument or ``LINGQ_COOKIE``) overrides
        ``CSRF_TOKEN`` and ``SESSION_ID`` when it carries those cookies.
        """
        env = os.environ if environ is None else environ
        csrf_token = env.get(ENV_CSRF) or ""
        session_id = env.get(ENV_SESSION) or ""

        raw_cookie = cookie_string or env.get(ENV_COOKIE)
        if raw_cookie:
            cookies = parse_cookie_string(raw_cookie)
            csrf_token = cookies.get(CSRF_COOKIE, csrf_token)
            session_id = cookies.get(SESSION_COOKIE, session_id)

        values = {
            ENV_LANGUAGE: env.get(ENV_LANGUAGE) or "",
            ENV_LESSON: env.get(ENV_LESSON) or "",
            ENV_CSRF: csrf_token,
            ENV_SESSION: session_id,
        }
        missing = [name for name, value in values.items() if not value]
        if missing:
            raise ConfigError(f"Missing LingQ settings: {', '.join(missing)}")

        try:
            lesson_code = int(values[ENV_LESSON])
        except ValueError:
            raise ConfigError(f"{ENV_LESSON} must be an integer, got {values[ENV_LESSON]!r}") from None

        return cls(
            language_code=values[ENV_LANGUAGE],
            lesson_code=lesson_code,
            csrf_token=csrf_token,
            session_id=session_id,
        )

    def build_client(self) -> LingQClient:
        return LingQClient(self.language_code, self.lesson_code, self.csrf_token, self.session_id)
