"""
Todo Vault backend package.

A FastAPI service for personal todo lists: account registration, bearer-token
sessions and per-account todo CRUD with search and pagination.

The ASGI application lives at todo_api.main:app; todo_api.main.create_app
builds additional instances with explicit settings.
"""

__version__ = "0.1.0"
