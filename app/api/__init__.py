"""
API Blueprints Package

All HTTP route handlers for the application, organized by domain.
Each module defines a Flask Blueprint registered in app/__init__.py.

BLUEPRINT REFERENCE:
====================

- chat.py       : Chat assistant sessions and messages (/api/chat/*)
- emails.py     : Email classification and storage (/api/emails/*)
- categories.py : Category rule management (/api/categories/*)

Health and metrics routes live in health_checks.py at the project root.
"""

# All blueprints are imported and registered in app/__init__.py
# This file serves as documentation only

__all__ = []
