"""Domain model for Testopia test runs, test cases and build reports.

Testopia returns plain XML-RPC structs. This module wraps them in small
dataclasses so the rest of the runner works with typed objects, and defines
the per-build Report that aggregates the statuses pushed back to the server.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Status(Enum):
    """Testopia case-run status ids."""

    IDLE = 1
    PASSED = 2
    FAILED = 3
    RUNNING = 4
    PAUSED = 5
    BLOCKED = 6
    ERROR = 7

    @property
    def label(self) -> str:
        """Human readable status name."""
        return self.name.capitalize()


def _to_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    return int(value)


def _nested_id(data: dict[str, Any], key: str) -> int | None:
    """Read `<key>_id`, falling back to a nested `<key>` struct."""
    value = data.get(f"{key}_id")
    if value is None and isinstance(data.get(key), dict):
        value = data[key].get(f"{key}_id")
    return _to_int(value)


@dataclass
class TestRun:
    """A Testopia test run, looked up once per build."""

    __test__ = False

    id: int
    summary: str = ""
    plan_id: int | None = None
    build_id: int | None = None
    environment_id: int | None = None
    notes: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestRun:
        """Build from a `TestRun.get` struct."""
        return cls(
            id=int(data.get("run_id", data.get("id", 0))),
            summary=data.get("summary") or "",
            plan_id=_nested_id(data, "plan"),
            build_id=_nested_id(data, "build"),
            environment_id=_nested_id(data, "environment"),
            notes=data.get("notes") or "",
        )


@dataclass
class TestCase:
    """A Testopia test case bound to the test run of the current build.

    The `status`, `notes`, `platform` and `attachments` fields are filled in
    by result seekers before the case is pushed back to the server.
    """

    __test__ = False

    id: int
    summary: str = ""
    alias: str = ""
    script: str = ""
    arguments: str = ""
    requirement: str = ""
    is_automated: bool = False
    case_status_id: int | None = None
    priority_id: int | None = None
    category_id: int | None = None
    run_id: int | None = None
    build_id: int | None = None
    environment_id: int | None = None
    status: Status | None = None
    platform: str = ""
    notes: list[str] = field(default_factory=list)
    attachments: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TestCase:
        """Build from a struct returned by `TestRun.get_test_cases`."""
        return cls(
            id=int(data.get("case_id", data.get("id", 0))),
            summary=data.get("summary") or "",
            alias=data.get("alias") or "",
            script=data.get("script") or "",
            arguments=data.get("arguments") or "",
            requirement=data.get("requirement") or "",
            is_automated=bool(int(data.get("isautomated") or 0)),
            case_status_id=_to_int(data.get("case_status_id")),
            priority_id=_to_int(data.get("priority_id")),
            category_id=_to_int(data.get("category_id")),
        )

    def bind_to_run(self, run: TestRun) -> None:
        """Attach the run scoped ids needed by `TestCaseRun.update`."""
        self.run_id = run.id
        self.build_id = run.build_id
        self.environment_id = run.environment_id

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            "id": self.id,
            "summary": self.summary,
            "alias": self.alias,
            "status": self.status.label if self.status else None,
            "platform": self.platform,
            "notes": list(self.notes),
            "attachments": list(self.attachments),
        }


@dataclass
class Report:
    """Status counters accumulated over one build.

    Each test case counts once, with the last status pushed for it.
    """

    statuses: dict[int, Status] = field(default_factory=dict)
    test_cases: list[TestCase] = field(default_factory=list)

    def add(self, test_case: TestCase) -> None:
        """Record the status of an updated test case."""
        if test_case.status is None:
            return
        if test_case.id not in self.statuses:
            self.test_cases.append(test_case)
        self.statuses[test_case.id] = test_case.status

    def _count(self, *statuses: Status) -> int:
        return sum(1 for status in self.statuses.values() if status in statuses)

    @property
    def total(self) -> int:
        return len(self.statuses)

    @property
    def passed(self) -> int:
        return self._count(Status.PASSED)

    @property
    def failed(self) -> int:
        return self._count(Status.FAILED, Status.ERROR)

    @property
    def blocked(self) -> int:
        return self._count(Status.BLOCKED)

    @property
    def idle(self) -> int:
        return self._count(Status.IDLE)

    def summary(self) -> dict[str, Any]:
        """Get summary statistics for the build."""
        pass_rate = self.passed / self.total if self.total > 0 else 0
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "blocked": self.blocked,
            "idle": self.idle,
            "pass_rate": pass_rate,
        }

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return {
            **self.summary(),
            "test_cases": [tc.to_dict() for tc in self.test_cases],
        }
