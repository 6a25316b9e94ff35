"""Core domain types and exceptions."""
