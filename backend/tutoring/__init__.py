"""Lesson lifecycle policy and tutor availability matching for the tutoring marketplace."""

__version__ = "0.1.0"
