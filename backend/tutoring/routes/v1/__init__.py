# backend/tutoring/routes/v1/__init__.py
"""
API v1 routers. Mounted under /api/v1 in main.py.
"""

from . import availability, balance, invitations, lessons

__all__ = ["availability", "balance", "invitations", "lessons"]
