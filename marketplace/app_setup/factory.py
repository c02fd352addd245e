"""
Factory d’application pour les entrypoints (marketplace.asgi, tests).
Ordonne les étapes d’initialisation de manière lisible et testable.
"""
from fastapi import FastAPI
from .lifespan import lifespan
from .middlewares import register_basic_middlewares, register_locale_middleware, register_no_cache_middleware
from .security import register_security_middleware
from .exceptions import register_exception_handlers
from .routers import register_routers
from marketplace.utils.csrf import register_csrf_middleware

def create_app() -> FastAPI:
    """
    Construit l’app FastAPI avec le lifespan et enregistre:
      - langue active (avant la session pour s’exécuter à l’intérieur)
      - middlewares de base, CSRF, sécurité, no-cache
      - gestionnaires d’exceptions et routers
    """
    app = FastAPI(title="Marketplace", lifespan=lifespan)
    register_locale_middleware(app)
    register_basic_middlewares(app)
    register_csrf_middleware(app)
    register_security_middleware(app)
    register_no_cache_middleware(app)
    register_exception_handlers(app)
    register_routers(app)
    return app
