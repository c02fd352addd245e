"""Redirections web avec message (?status=... / ?error=...) pour l’UI."""
from typing import Optional
import urllib.parse

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.status import HTTP_303_SEE_OTHER


FLASH_PARAMS = ("status", "error")


def with_flash(url: str, *, status: Optional[str] = None, error: Optional[str] = None) -> str:
    """Remplace les messages déjà présents dans l’URL (referer) par les nouveaux."""
    parsed = urllib.parse.urlsplit(url)
    query = [(k, v) for k, v in urllib.parse.parse_qsl(parsed.query, keep_blank_values=True) if k not in FLASH_PARAMS]
    if status:
        query.append(("status", status))
    if error:
        query.append(("error", error))
    return urllib.parse.urlunsplit(parsed._replace(query=urllib.parse.urlencode(query)))


def redirect_with(url: str, *, status: Optional[str] = None, error: Optional[str] = None) -> RedirectResponse:
    return RedirectResponse(url=with_flash(url, status=status, error=error), status_code=HTTP_303_SEE_OTHER)


def back_url(request: Request, fallback: str) -> str:
    """Referer limité au même hôte, sinon fallback."""
    referer = request.headers.get("referer") or ""
    if not referer:
        return fallback
    parsed = urllib.parse.urlparse(referer)
    if parsed.netloc and parsed.netloc != request.url.netloc:
        return fallback
    return parsed.path + (f"?{parsed.query}" if parsed.query else "") or fallback
