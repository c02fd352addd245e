# module marketplace.payment_methods.views
"""Page « moyens de paiement » (paramètres utilisateur).
- SG: cartes Stripe (SetupIntent côté client, défaut, suppression)
- MM: portefeuilles locaux (ajout, défaut, suppression)
Les identifiants inconnus ou appartenant à un autre utilisateur donnent le même message générique.
"""
from typing import Any, Dict
import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from marketplace.config import ShopSettings, get_settings
from marketplace.payment_methods import service as local_methods
from marketplace.payments import registry
from marketplace.payments.base import INVALID, OK
from marketplace.payments.stripe_gateway import StripeGateway
from marketplace.region.resolver import get_region
from marketplace.utils.rate_limit import optional_rate_limit
from marketplace.utils.redirects import redirect_with
from marketplace.utils.security import require_user

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/settings/payment", tags=["Payment methods"])

PAYMENT_SETTINGS_URL = "/settings/payment"
LOCAL_METHODS_REGION = "MM"
CARD_REGION = "SG"


class LocalMethodIn(BaseModel):
    type: str
    identifier: str = Field(..., min_length=1, max_length=local_methods.MAX_IDENTIFIER_LENGTH)


class DefaultMethodIn(BaseModel):
    payment_method_id: str = Field(..., min_length=1)


def _redirect_for(result: str, success: str):
    if result == OK:
        return redirect_with(PAYMENT_SETTINGS_URL, status=success)
    if result == INVALID:
        return redirect_with(PAYMENT_SETTINGS_URL, error="Moyen de paiement invalide.")
    return redirect_with(PAYMENT_SETTINGS_URL, error="Service de paiement indisponible, réessayez plus tard.")


@router.get("", name="payment_settings")
def payment_settings(
    request: Request,
    user: Dict[str, Any] = Depends(require_user),
    settings: ShopSettings = Depends(get_settings),
    region: str = Depends(get_region),
) -> Dict[str, Any]:
    gateway = registry.stored_methods_gateway_for(region, settings)
    return {
        "region": region,
        "methods": gateway.list_stored_methods(user) if gateway else [],
        "can_add_local": region == LOCAL_METHODS_REGION,
        "local_types": local_methods.TYPE_LABELS if region == LOCAL_METHODS_REGION else {},
        "can_add_card": region == CARD_REGION and settings.stripe_configured,
        "stripe_public_key": settings.stripe_public_key if region == CARD_REGION else None,
        "flash": {
            "status": request.query_params.get("status"),
            "error": request.query_params.get("error"),
        },
    }


@router.post("")
def add_local_method(
    payload: LocalMethodIn,
    user: Dict[str, Any] = Depends(require_user),
    region: str = Depends(get_region),
):
    if region != LOCAL_METHODS_REGION:
        raise HTTPException(status_code=403, detail="Moyens de paiement locaux indisponibles dans votre région")
    try:
        local_methods.add_method(user["id"], payload.type, payload.identifier)
    except HTTPException as e:
        return redirect_with(PAYMENT_SETTINGS_URL, error=str(e.detail))
    return redirect_with(PAYMENT_SETTINGS_URL, status="Moyen de paiement ajouté.")


@router.post("/setup-intent", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
def create_setup_intent(
    user: Dict[str, Any] = Depends(require_user),
    settings: ShopSettings = Depends(get_settings),
    region: str = Depends(get_region),
) -> Dict[str, str]:
    """client_secret Stripe pour enregistrer une carte côté navigateur (SG uniquement)."""
    if region != CARD_REGION:
        raise HTTPException(status_code=403, detail="Cartes indisponibles dans votre région")
    gateway = StripeGateway(settings)
    if not gateway.is_configured():
        raise HTTPException(status_code=503, detail="Stripe non configuré")
    client_secret = gateway.create_setup_intent(user)
    if not client_secret:
        raise HTTPException(status_code=503, detail="Impossible de préparer l’enregistrement de la carte")
    return {"client_secret": client_secret}


@router.post("/default")
def set_default_method(
    payload: DefaultMethodIn,
    user: Dict[str, Any] = Depends(require_user),
    settings: ShopSettings = Depends(get_settings),
):
    gateway = registry.gateway_for_method(payload.payment_method_id, settings)
    result = gateway.set_default(user, payload.payment_method_id)
    return _redirect_for(result, "Moyen de paiement par défaut mis à jour.")


@router.delete("/{payment_method_id}")
def remove_method(
    payment_method_id: str,
    user: Dict[str, Any] = Depends(require_user),
    settings: ShopSettings = Depends(get_settings),
):
    gateway = registry.gateway_for_method(payment_method_id, settings)
    result = gateway.remove(user, payment_method_id)
    return _redirect_for(result, "Moyen de paiement supprimé.")
