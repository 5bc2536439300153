"""
Todo service package.

A FastAPI application exposing Todo items on a single ``/todos`` endpoint
backed by SQLite. Build an app with ``todo_service.main.create_app`` or serve
the default one with ``uvicorn todo_service.main:app``.
"""
