"""Valkompass: an AI-driven political questionnaire with auto-advancing answers."""

__version__ = "1.0.0"
