#!/usr/bin/env python3
"""
Exercise the LingQ client against the live service.

Creates a private throwaway lesson, edits its sentences, reads its words and
stats, then deletes it and confirms the deletion. Checks run in dependency
order; the process exits non-zero if anything failed or was skipped.

Usage:
    export LANG_CODE=he
    export LESSON_CODE=123456
    export CSRF_TOKEN=...
    export SESSION_ID=...            # or LINGQ_COOKIE="csrftoken=...; wwwlingqcomsa=..."
    python live_check.py
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from dotenv import load_dotenv

from lingq import CheckRunner, LessonNotFoundError, LingQClient, LingQError, Settings
from lingq.client import describe_request_error
from lingq.models import LessonCreateParams

# Load environment variables from .env file
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_VOICE = "he-IL-Standard-A"


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run dependent checks against the live LingQ API")
    parser.add_argument("--cookie", help="LingQ cookie string; defaults to LINGQ_COOKIE env")
    parser.add_argument("--language", help="Language of the throwaway lesson (defaults to LANG_CODE)")
    parser.add_argument("--voice", default=DEFAULT_VOICE, help="Voice used for the TTS check")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log request details")
    return parser.parse_args()


def build_checks(client: LingQClient, language: str, voice: str) -> CheckRunner:
    runner = CheckRunner()

    with runner.group("Lesson Operations", blocking=True):

        @runner.check("Lesson Create", provides="lesson_id")
        async def lesson_create():
            params = LessonCreateParams(
                title="Test Lesson",
                text="Initial text",
                language=language,
                description="Test lesson",
                status="private",
                is_hidden=True,
            )
            created = await client.create_lesson(params)
            logger.info(f"[CHECK] Created lesson id={created.id}")
            return created.id

        with runner.group("Lesson Modification", blocking=False):

            @runner.check("Lesson Get", requires=("lesson_id",))
            async def lesson_get(lesson_id):
                lesson = await client.get_lesson(lesson_id)
                if lesson.id != lesson_id:
                    raise LingQError(f"Fetched lesson {lesson.id}, expected {lesson_id}")

            @runner.check("Lesson Words Get", requires=("lesson_id",))
            async def lesson_words_get(lesson_id):
                words = await client.get_lesson_words()
                logger.info(f"[CHECK] {len(words.cards)} cards, {len(words.words)} words")

            @runner.check("Lesson Stats Increment", blocking=False, requires=("lesson_id",))
            async def lesson_stats(lesson_id):
                stats = await client.increment_read_times(1)
                logger.info(f"[CHECK] readTimes={stats.read_times} listenTimes={stats.listen_times}")

            @runner.check("TTS Get", blocking=False)
            async def tts_get():
                result = await client.get_tts("Initial text", voice)
                logger.info(f"[CHECK] TTS audio: {result.audio}")

            with runner.group("Sentence Operations", blocking=False):

                @runner.check("Sentence Create", requires=("lesson_id",), provides="sentence_text")
                async def sentence_create(lesson_id):
                    sentence = await client.create_sentence(1, "New test sentence", after=False)
                    lesson = await client.get_lesson()
                    first = lesson.sentences()[0]
                    if first.text != sentence.text:
                        raise LingQError(f"Sentence 1 is {first.text!r} after insert, expected {sentence.text!r}")
                    return sentence.text

                with runner.group("Sentence Modification", blocking=False):

                    @runner.check("Sentence Text Update", requires=("sentence_text",))
                    async def sentence_text_update(sentence_text):
                        await client.update_sentence_text(1, "Updated test sentence")

                    @runner.check("Sentence Timestamp Update", requires=("sentence_text",))
                    async def sentence_timestamp_update(sentence_text):
                        await client.update_sentence_timestamp(1, (10, 20))

                    @runner.check("Sentence Break", requires=("sentence_text",))
                    async def sentence_break(sentence_text):
                        await client.break_sentence(1)

                @runner.check("Sentence Delete", requires=("sentence_text",))
                async def sentence_delete(sentence_text):
                    await client.delete_sentence(1)

            @runner.check("Lesson Delete", requires=("lesson_id",), provides="deleted_lesson_id")
            async def lesson_delete(lesson_id):
                response = await client.delete_lesson(lesson_id)
                if not response.is_success:
                    raise LingQError(f"Failed to delete lesson (status={response.status_code})")
                return lesson_id

            @runner.check("Lesson Get After Delete", requires=("deleted_lesson_id",))
            async def lesson_get_after_delete(deleted_lesson_id):
                try:
                    await client.get_lesson(deleted_lesson_id)
                except LessonNotFoundError as exc:
                    logger.info(f"[CHECK] Lesson deletion confirmed: {exc}")
                    return
                raise LingQError("Lesson was not deleted")

    return runner


async def run(settings: Settings, language: str, voice: str) -> int:
    async with settings.build_client() as client:
        runner = build_checks(client, language, voice)
        summary = await runner.run()
    print(summary.render())
    return summary.exit_code()


def main() -> int:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler(),
        ]
    )
    # httpx logs every request at INFO
    logging.getLogger('httpx').setLevel(logging.WARNING)

    try:
        settings = Settings.from_env(cookie_string=args.cookie)
    except LingQError as exc:
        print(f"Failed to prepare LingQ client: {describe_request_error(exc)}", file=sys.stderr)
        return 1

    return asyncio.run(run(settings, args.language or settings.language_code, args.voice))


if __name__ == "__main__":
    raise SystemExit(main())
