"""
Middlewares transverses de l’application.
- register_basic_middlewares: session, CORS, TrustedHost et confiance en X-Forwarded-*.
- register_locale_middleware: langue active (session puis APP_LOCALE) dans request.state.locale.
- register_no_cache_middleware: empêche la mise en cache des pages /settings et /cart.
Notes:
- Le dernier middleware ajouté s’exécute en premier: la langue est enregistrée avant la session.
"""
from fastapi import Request, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.trustedhost import TrustedHostMiddleware
from starlette.middleware.sessions import SessionMiddleware
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from marketplace.config import APP_LOCALE, ALLOWED_HOSTS, COOKIE_SECURE, CORS_ORIGINS, SESSION_SECRET_KEY
from marketplace.region.views import resolve_locale

NO_CACHE_PREFIXES = ("/settings", "/cart")

def register_basic_middlewares(app: FastAPI) -> None:
    """
    Ajoute les middlewares « de base »:
    - SessionMiddleware: session cookie (langue choisie).
    - CORSMiddleware: origines définies (dev/prod).
    - TrustedHostMiddleware: limite les hôtes acceptés.
    - ProxyHeadersMiddleware: client.host réel derrière proxy (résolution de région par IP).
    """
    app.add_middleware(SessionMiddleware, secret_key=SESSION_SECRET_KEY, https_only=COOKIE_SECURE)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(
        TrustedHostMiddleware,
        allowed_hosts=ALLOWED_HOSTS + ["*"] if "*" in CORS_ORIGINS else ALLOWED_HOSTS,
    )
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=["*"])

def register_locale_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def active_locale(request: Request, call_next):
        session_locale = request.session.get("locale") if "session" in request.scope else None
        locale = resolve_locale(session_locale, APP_LOCALE)
        request.state.locale = locale
        response = await call_next(request)
        response.headers.setdefault("Content-Language", locale)
        return response

def register_no_cache_middleware(app: FastAPI) -> None:
    @app.middleware("http")
    async def no_cache_for_protected(request: Request, call_next):
        response = await call_next(request)
        path = request.url.path.rstrip("/")
        if request.method == "GET" and path.startswith(NO_CACHE_PREFIXES):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
            response.headers["Pragma"] = "no-cache"
            response.headers["Expires"] = "0"
        return response
