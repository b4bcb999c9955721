"""
asgi.py -- ASGI entry point for SmartSprint.

Settings are resolved here, once, at import time. A missing or short
SECRET_KEY raises before uvicorn binds a socket.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app

app = create_app()
