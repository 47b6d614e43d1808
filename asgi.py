"""
asgi.py -- ASGI entry point for authgate.

Settings and the secrets document are read once, here, at import time.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import create_app

app = create_app()
