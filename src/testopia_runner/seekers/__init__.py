"""Result seekers mapping build reports onto Testopia test cases.

Usage:
    from testopia_runner.seekers import get_default_registry

    seeker = get_default_registry().create(seeker_config)
    seeker.seek(test_cases, workspace, site)
"""

from .base import ResultSeeker, failure_notes, match_test_cases, resolve_status
from .junit import JUnitClassNameResultSeeker
from .registry import SeekerRegistry, get_default_registry
from .testng import TestNGClassNameResultSeeker, TestNGSuiteNameResultSeeker

__all__ = [
    "JUnitClassNameResultSeeker",
    "ResultSeeker",
    "SeekerRegistry",
    "TestNGClassNameResultSeeker",
    "TestNGSuiteNameResultSeeker",
    "failure_notes",
    "get_default_registry",
    "match_test_cases",
    "resolve_status",
]
