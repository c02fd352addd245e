"""
Gestionnaires d’exceptions HTTP.
- 401 sur une page HTML: redirection vers /login?error=...
- 403 sur une page HTML (ex: fonctionnalité indisponible dans la région): retour à la page précédente avec message.
- Clients API (Accept JSON, chemins /api/*, callbacks): réponse JSON {"detail": ...} inchangée.
"""
from fastapi import FastAPI, HTTPException, Request
from fastapi.responses import JSONResponse

from marketplace.utils.redirects import back_url, redirect_with

LOGIN_URL = "/login"
DEFAULT_MESSAGES = {401: "Veuillez vous connecter", 403: "Action non autorisée"}


def wants_html(request: Request) -> bool:
    accept = (request.headers.get("accept") or "").lower()
    return "text/html" in accept and not request.url.path.startswith("/api/")


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException):
        if exc.status_code in DEFAULT_MESSAGES and wants_html(request):
            message = str(exc.detail or "") or DEFAULT_MESSAGES[exc.status_code]
            if exc.status_code == 401:
                return redirect_with(LOGIN_URL, error=message)
            return redirect_with(back_url(request, "/"), error=message)
        return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail}, headers=exc.headers)
