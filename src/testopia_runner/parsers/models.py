"""Parsed report tree shared by the TestNG and JUnit parsers."""

from __future__ import annotations

from dataclasses import dataclass

# Method statuses, lower-cased from the report. An absent status is "".
PASS = "pass"
FAIL = "fail"
SKIP = "skip"


@dataclass(frozen=True)
class TestMethod:
    """A single test method and its outcome."""

    __test__ = False

    name: str
    status: str = ""
    signature: str = ""
    is_config: bool = False
    duration_ms: int = 0
    message: str = ""


@dataclass(frozen=True)
class TestClass:
    """A test class aggregating its methods."""

    __test__ = False

    name: str
    methods: tuple[TestMethod, ...] = ()


@dataclass(frozen=True)
class Test:
    """A `<test>` block (TestNG) or a `<testsuite>` block (JUnit)."""

    __test__ = False

    name: str
    classes: tuple[TestClass, ...] = ()

    @property
    def methods(self) -> tuple[TestMethod, ...]:
        return tuple(m for c in self.classes for m in c.methods)


@dataclass(frozen=True)
class Suite:
    """Everything parsed from one report file."""

    name: str
    tests: tuple[Test, ...] = ()
    source: str = ""

    @property
    def classes(self) -> tuple[TestClass, ...]:
        return tuple(c for t in self.tests for c in t.classes)

    @property
    def methods(self) -> tuple[TestMethod, ...]:
        return tuple(m for t in self.tests for m in t.methods)
