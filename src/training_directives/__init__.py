"""Deterministic training directives with validated narration."""

__version__ = "0.1.0"
