import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel
from starlette.status import HTTP_303_SEE_OTHER

from marketplace.checkout import service as checkout_service
from marketplace.config import ShopSettings, get_settings
from marketplace.payments.base import CheckoutUrls
from marketplace.payments.stripe_gateway import StripeGateway
from marketplace.payments.twoc2p import TwoC2PGateway
from marketplace.region.resolver import get_region
from marketplace.utils.rate_limit import optional_rate_limit
from marketplace.utils.redirects import redirect_with
from marketplace.utils.security import require_user

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Checkout"])

ORDERS_URL = "/settings/orders"
CART_URL = "/cart"


class TwoC2PCallbackIn(BaseModel):
    payload: str


def checkout_urls(request: Request) -> CheckoutUrls:
    """URLs de retour passerelle, construites depuis les routes nommées."""
    return CheckoutUrls(
        success_url=f"{request.url_for('checkout_success')}?session_id={{CHECKOUT_SESSION_ID}}",
        cancel_url=str(request.url_for("cart_index")),
        return_url=str(request.url_for("twoc2p_return")),
        callback_url=str(request.url_for("twoc2p_callback")),
    )


# module marketplace.checkout.views
@router.post("/checkout", dependencies=[Depends(optional_rate_limit(times=10, seconds=60))])
async def checkout(
    request: Request,
    user: Dict[str, Any] = Depends(require_user),
    settings: ShopSettings = Depends(get_settings),
    region: str = Depends(get_region),
):
    """
    Passe commande pour le panier de l’utilisateur authentifié.
    - Panier vide: retour au panier avec erreur, aucune commande.
    - Passerelle disponible: 303 vers la page de paiement hébergée.
    - Aucune passerelle: commande 'completed', 303 vers l’historique.
    - Échec de démarrage du paiement: commande 'payment_failed', message sur l’historique.
    """
    outcome = checkout_service.checkout(user, settings=settings, region=region, urls=checkout_urls(request))

    if outcome.kind == checkout_service.EMPTY_CART:
        return redirect_with(CART_URL, error="Votre panier est vide.")
    if outcome.kind == checkout_service.ORDER_FAILED:
        return redirect_with(CART_URL, error="Impossible de créer la commande, réessayez.")
    if outcome.kind == checkout_service.REDIRECT:
        return RedirectResponse(url=outcome.redirect_url, status_code=HTTP_303_SEE_OTHER)
    if outcome.kind == checkout_service.PAYMENT_FAILED:
        return redirect_with(
            ORDERS_URL,
            error="Le paiement n’a pas pu démarrer. Aucun montant n’a été débité.",
        )
    return redirect_with(ORDERS_URL, status="Commande enregistrée. Le règlement se fera hors ligne.")


@router.get("/checkout/success", name="checkout_success")
async def checkout_success(
    session_id: Optional[str] = None,
    user: Dict[str, Any] = Depends(require_user),
    settings: ShopSettings = Depends(get_settings),
):
    """Retour Stripe: la session est relue côté Stripe; seule une commande de l’utilisateur passe en 'paid'."""
    gateway = StripeGateway(settings)
    if not session_id or not gateway.is_configured():
        return redirect_with(ORDERS_URL, error="Paiement non confirmé.")
    order_id = checkout_service.finalize_payment(gateway, session_id, user_id=user["id"])
    if not order_id:
        return redirect_with(ORDERS_URL, error="Paiement non confirmé.")
    return redirect_with(ORDERS_URL, status="Paiement confirmé.")


@router.get("/checkout/2c2p/return", name="twoc2p_return")
async def twoc2p_return(
    payload: Optional[str] = None,
    user: Dict[str, Any] = Depends(require_user),
    settings: ShopSettings = Depends(get_settings),
):
    """Retour navigateur 2C2P; la confirmation fait foi via le callback serveur si aucun payload n’est joint."""
    gateway = TwoC2PGateway(settings)
    if payload and gateway.is_configured():
        if checkout_service.finalize_payment(gateway, payload, user_id=user["id"]):
            return redirect_with(ORDERS_URL, status="Paiement confirmé.")
    return redirect_with(ORDERS_URL, status="Paiement en cours de confirmation.")


@router.post("/checkout/2c2p/callback", name="twoc2p_callback", include_in_schema=False)
async def twoc2p_callback(body: TwoC2PCallbackIn, settings: ShopSettings = Depends(get_settings)):
    """
    Callback serveur à serveur 2C2P: {"payload": "<jwt HS256>"}.
    - 503 si 2C2P n’est pas configuré; 400 si la signature est invalide.
    - {"status": "paid"} quand la commande est passée en 'paid', sinon {"status": "ignored"}.
    """
    gateway = TwoC2PGateway(settings)
    if not gateway.is_configured():
        raise HTTPException(status_code=503, detail="2C2P non configuré")
    if gateway.decode_payload(body.payload) is None:
        raise HTTPException(status_code=400, detail="Invalid 2C2P payload")
    order_id = checkout_service.finalize_payment(gateway, body.payload)
    if not order_id:
        return {"status": "ignored"}
    logger.info("2c2p.callback paid order_id=%s", order_id)
    return {"status": "paid", "order_id": order_id}
