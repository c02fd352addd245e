"""Contexte régional exposé au client (région, devise d'affichage, langue)."""
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel

from marketplace.cart import service as cart_service
from marketplace.config import LOCALES, REGION_LABELS, ShopSettings, get_settings
from marketplace.region.resolver import get_region
from marketplace.utils.security import get_optional_user

router = APIRouter(tags=["Region"])


class LocaleIn(BaseModel):
    locale: str


def resolve_locale(session_locale: Optional[str], default: str) -> str:
    """Langue de session si supportée, sinon langue de l’application."""
    if session_locale in LOCALES:
        return session_locale
    return default if default in LOCALES else LOCALES[0]


@router.get("/api/v1/region")
def region_context(
    request: Request,
    region: str = Depends(get_region),
    settings: ShopSettings = Depends(get_settings),
    user: Optional[Dict[str, Any]] = Depends(get_optional_user),
) -> Dict[str, Any]:
    """Props partagées par toutes les pages: région, devise, langue et état du panier."""
    context = {
        "region": region,
        "region_label": REGION_LABELS.get(region, "All"),
        "currency": settings.currency_for(region),
        "locale": resolve_locale(request.session.get("locale"), settings.default_locale),
    }
    context.update(cart_service.cart_context(user["id"] if user else ""))
    return context


@router.post("/locale")
def set_locale(payload: LocaleIn, request: Request) -> Dict[str, str]:
    if payload.locale not in LOCALES:
        raise HTTPException(status_code=400, detail="Langue non supportée")
    request.session["locale"] = payload.locale
    return {"locale": payload.locale}
