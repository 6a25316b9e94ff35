"""Parsers turning XML test reports into Suite -> Test -> Class -> method trees."""

from .junit import JUnitParser
from .models import Suite, Test, TestClass, TestMethod
from .testng import TestNGParser

__all__ = [
    "JUnitParser",
    "Suite",
    "Test",
    "TestClass",
    "TestMethod",
    "TestNGParser",
]
