"""Sequential runner for checks that depend on each other's results.

Checks against the live service are not independent: deleting a sentence
needs a lesson that an earlier check created. Checks therefore run strictly
one after another, depth first, and publish named outputs that later checks
declare as inputs. A failing *blocking* check inside a *blocking* group skips
the rest of that group instead of running it against an unknown state.

Example::

    runner = CheckRunner()

    with runner.group("Lesson Operations"):
        @runner.check("Lesson Create", provides="lesson_id")
        async def create():
            return (await client.create_lesson(params)).id

        @runner.check("Lesson Get", requires=("lesson_id",))
        async def get(lesson_id):
            await client.get_lesson(lesson_id)

    summary = asyncio.run(runner.run())
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Iterator, Optional, Sequence, Union

import httpx

from .client import LingQError, describe_request_error

logger = logging.getLogger(__name__)

CheckFn = Callable[..., Awaitable[Any]]


class CheckStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass
class Check:
    name: str
    fn: CheckFn
    blocking: bool = True
    requires: tuple[str, ...] = ()
    provides: Optional[str] = None


@dataclass
class CheckGroup:
    name: str
    blocking: bool = True
    children: list[CheckCase] = field(default_factory=list)


CheckCase = Union[Check, CheckGroup]


@dataclass
class CheckResult:
    name: str
    status: CheckStatus
    error: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status is CheckStatus.PASSED


@dataclass
class RunSummary:
    results: list[CheckResult]

    @property
    def passed(self) -> list[CheckResult]:
        return [r for r in self.results if r.status is CheckStatus.PASSED]

    @property
    def failed(self) -> list[CheckResult]:
        return [r for r in self.results if r.status is CheckStatus.FAILED]

    @property
    def skipped(self) -> list[CheckResult]:
        return [r for r in self.results if r.status is CheckStatus.SKIPPED]

    @property
    def ok(self) -> bool:
        return all(r.passed for r in self.results)

    def exit_code(self) -> int:
        return 0 if self.ok else 1

    def render(self) -> str:
        lines = ["===== CHECK SUMMARY ====="]
        lines.append(f"Passed checks: {', '.join(r.name for r in self.passed) or 'None'}")
        not_passed = [r for r in self.results if not r.passed]
        if not_passed:
            lines.append("Failed checks:")
            for result in not_passed:
                lines.append(f"  {result.name} [{result.status.value}]: {result.error}")
        else:
            lines.append("Failed checks: None")
        return "\n".join(lines)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, (LingQError, httpx.RequestError)):
        return describe_request_error(exc)
    return str(exc) or type(exc).__name__


class CheckRunner:
    def __init__(self) -> None:
        self.roots: list[CheckCase] = []
        self.outputs: dict[str, Any] = {}
        self.results: list[CheckResult] = []
        self._stack: list[CheckGroup] = []

    def _register(self, case: CheckCase) -> None:
        if self._stack:
            self._stack[-1].children.append(case)
        else:
            self.roots.append(case)

    def add_check(
        self,
        name: str,
        fn: CheckFn,
        *,
        blocking: bool = True,
        requires: Sequence[str] = (),
        provides: Optional[str] = None,
    ) -> Check:
        """Register a check in the innermost open group, or as a root."""
        check = Check(name=name, fn=fn, blocking=blocking, requires=tuple(requires), provides=provides)
        self._register(check)
        return check

    def check(
        self,
        name: str,
        *,
        blocking: bool = True,
        requires: Sequence[str] = (),
        provides: Optional[str] = None,
    ) -> Callable[[CheckFn], CheckFn]:
        """Decorator form of :meth:`add_check`."""

        def decorator(fn: CheckFn) -> CheckFn:
            self.add_check(name, fn, blocking=blocking, requires=requires, provides=provides)
            return fn

        return decorator

    @contextmanager
    def group(self, name: str, *, blocking: bool = True) -> Iterator[CheckGroup]:
        """Open a group; checks registered inside the block become its children."""
        group = CheckGroup(name=name, blocking=blocking)
        self._register(group)
        self._stack.append(group)
        try:
            yield group
        finally:
            self._stack.pop()

    def graph(self) -> list[tuple[str, tuple[str, ...], Optional[str]]]:
        """(name, requires, provides) for every check, in execution order."""
        edges: list[tuple[str, tuple[str, ...], Optional[str]]] = []

        def walk(cases: list[CheckCase]) -> None:
            for case in cases:
                if isinstance(case, Check):
                    edges.append((case.name, case.requires, case.provides))
                else:
                    walk(case.children)

        walk(self.roots)
        return edges

    async def run(self) -> RunSummary:
        self.results = []
        for case in self.roots:
            await self._run_case(case)
        summary = RunSummary(list(self.results))
        logger.info(
            f"[CHECK] Finished: {len(summary.passed)} passed, "
            f"{len(summary.failed)} failed, {len(summary.skipped)} skipped"
        )
        return summary

    async def _run_case(self, case: CheckCase) -> bool:
        """Run a check or group; True means a blocking failure happened."""
        if isinstance(case, Check):
            return await self._run_check(case)
        return await self._run_group(case)

    async def _run_check(self, check: Check) -> bool:
        mode = "blocking" if check.blocking else "non-blocking"
        logger.info(f"[CHECK] Running check: {check.name} ({mode})")

        missing = [name for name in check.requires if name not in self.outputs]
        if missing:
            error = f"Missing inputs: {', '.join(missing)}"
            logger.error(f"[CHECK] Check failed: {check.name} - {error}")
            self.results.append(CheckResult(check.name, CheckStatus.FAILED, error))
            return check.blocking

        kwargs = {name: self.outputs[name] for name in check.requires}
        try:
            value = await check.fn(**kwargs)
        except Exception as exc:
            logger.error(f"[CHECK] Check failed: {check.name} - {_describe(exc)}")
            logger.debug(f"[CHECK] {check.name} traceback", exc_info=True)
            self.results.append(CheckResult(check.name, CheckStatus.FAILED, _describe(exc)))
            return check.blocking

        if check.provides:
            self.outputs[check.provides] = value
        logger.info(f"[CHECK] Check passed: {check.name}")
        self.results.append(CheckResult(check.name, CheckStatus.PASSED))
        return False

    async def _run_group(self, group: CheckGroup) -> bool:
        mode = "blocking" if group.blocking else "non-blocking"
        logger.info(f"[CHECK] Running group: {group.name} ({mode})")
        blocked = False
        for case in group.children:
            if group.blocking and blocked:
                self._skip(case, group.name, f'Skipped due to previous blocking failure in group "{group.name}"')
                continue
            if await self._run_case(case) and group.blocking:
                blocked = True
        logger.info(f"[CHECK] Finished group: {group.name}")
        return blocked if group.blocking else False

    def _skip(self, case: CheckCase, trigger: str, reason: str) -> None:
        if isinstance(case, Check):
            logger.warning(f"[CHECK] Skipping check: {case.name} - {reason}")
            self.results.append(CheckResult(case.name, CheckStatus.SKIPPED, reason))
            return
        logger.warning(f"[CHECK] Skipping group: {case.name} - {reason}")
        for child in case.children:
            self._skip(
                child,
                trigger,
                f'Skipped due to parent group "{case.name}" being blocked by group "{trigger}"',
            )
