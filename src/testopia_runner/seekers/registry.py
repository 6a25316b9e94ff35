"""Registry of result seeker kinds usable from job configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING

from testopia_runner.core.exceptions import ConfigurationError

from .base import ResultSeeker

if TYPE_CHECKING:
    from testopia_runner.config import SeekerConfig


class SeekerRegistry:
    """Registry mapping a configuration `kind` to a ResultSeeker class."""

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._seekers: dict[str, type[ResultSeeker]] = {}

    @property
    def kinds(self) -> list[str]:
        """Return the registered kinds."""
        return list(self._seekers)

    def register(self, kind: str, seeker_class: type[ResultSeeker]) -> None:
        """Register a seeker class under `kind`."""
        self._seekers[kind] = seeker_class

    def create(self, config: SeekerConfig) -> ResultSeeker:
        """Build a seeker from its configuration.

        Raises:
            ConfigurationError: If the kind is not registered.
        """
        seeker_class = self._seekers.get(config.kind)
        if seeker_class is None:
            raise ConfigurationError(
                f"Unknown result seeker '{config.kind}'. "
                f"Available: {', '.join(sorted(self._seekers))}"
            )
        return seeker_class(
            include_pattern=config.include_pattern,
            attach_xml=config.attach_xml,
            mark_skipped_as_blocked=config.mark_skipped_as_blocked,
        )


def get_default_registry() -> SeekerRegistry:
    """Create a registry with the TestNG and JUnit seekers registered."""
    from .junit import JUnitClassNameResultSeeker
    from .testng import TestNGClassNameResultSeeker, TestNGSuiteNameResultSeeker

    registry = SeekerRegistry()
    registry.register("testng-class-name", TestNGClassNameResultSeeker)
    registry.register("testng-suite-name", TestNGSuiteNameResultSeeker)
    registry.register("junit-class-name", JUnitClassNameResultSeeker)
    return registry
