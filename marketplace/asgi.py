"""
ASGI entrypoint: expose `app` pour les process managers.

- En production, uvicorn (ou gunicorn + uvicorn workers) importe `marketplace.asgi:app`.
- Toute la configuration FastAPI est centralisée dans marketplace.app_setup.factory.
"""

from marketplace.app import app
