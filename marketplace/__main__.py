"""
Lancement local: python -m marketplace

Variables lues: HOST (0.0.0.0), PORT (8000), UVICORN_RELOAD ("1"/"true"), LOG_LEVEL (info).
Derrière un proxy, X-Forwarded-For est pris en compte par ProxyHeadersMiddleware (région par IP).
"""
import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "marketplace.asgi:app",
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "8000")),
        reload=os.environ.get("UVICORN_RELOAD", "").lower() in ("1", "true", "yes"),
        log_level=os.environ.get("LOG_LEVEL", "info"),
    )


if __name__ == "__main__":
    main()
