"""Vocabulary tutor backend: daily word selection and mastery tracking."""

__version__ = "0.1.0"
