"""
Cas d'usage 'checkout': orchestre panier, commandes et passerelle de paiement.

Machine d’états d’une commande:
    pending -> paid            (retour passerelle confirmé)
    pending -> completed       (aucune passerelle configurée: règlement hors ligne)
    pending -> payment_failed  (la session de paiement n’a pas pu démarrer)

Dans toutes les branches où une commande a été créée, le panier est vidé.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from marketplace.cart import repository as cart_repository
from marketplace.cart.service import cart_total, listing_of, listing_price
from marketplace.config import ShopSettings
from marketplace.orders import repository as orders_repository
from marketplace.orders.models import OrderStatus
from marketplace.payments import registry
from marketplace.payments.base import CheckoutLine, CheckoutUrls, PaymentGateway

logger = logging.getLogger(__name__)

# Issues possibles d’un checkout
EMPTY_CART = "empty_cart"
ORDER_FAILED = "order_failed"
REDIRECT = "redirect"
COMPLETED = "completed"
PAYMENT_FAILED = "payment_failed"


@dataclass(frozen=True)
class CheckoutOutcome:
    kind: str
    order_id: Optional[str] = None
    redirect_url: Optional[str] = None
    gateway: Optional[str] = None


def checkout_lines(items: List[Dict[str, Any]]) -> List[CheckoutLine]:
    lines = []
    for item in items:
        listing = listing_of(item)
        lines.append(
            CheckoutLine(
                listing_id=str(item.get("listing_id") or listing.get("id")),
                title=listing.get("title") or "Listing",
                price=listing_price(listing),
            )
        )
    return lines


def _clear_cart(user_id: str, order_id: str) -> None:
    if not cart_repository.clear_cart(user_id):
        logger.warning("checkout cart not cleared user_id=%s order_id=%s", user_id, order_id)


def checkout(
    user: Dict[str, Any],
    *,
    settings: ShopSettings,
    region: Optional[str],
    urls: CheckoutUrls,
) -> CheckoutOutcome:
    """
    Passe commande pour tout le panier de l’utilisateur.
    - Panier vide: EMPTY_CART, aucune commande créée.
    - Total = somme des prix courants des annonces (instantané), prix figés sur les lignes.
    - Passerelle choisie par région; erreurs passerelle dégradées en PAYMENT_FAILED.
    """
    user_id = user["id"]
    items = cart_repository.fetch_cart_items(user_id)
    if not items:
        return CheckoutOutcome(kind=EMPTY_CART)

    lines = checkout_lines(items)
    total: Decimal = cart_total(items)
    order = orders_repository.create_order_with_items(
        user_id=user_id,
        total=str(total),
        items=[{"listing_id": line.listing_id, "quantity": 1, "price": str(line.price)} for line in lines],
    )
    if not order:
        return CheckoutOutcome(kind=ORDER_FAILED)
    order_id = str(order["id"])
    order.setdefault("total", str(total))

    gateway = registry.checkout_gateway_for(region, settings)
    if gateway is None:
        orders_repository.update_order(order_id, {"status": OrderStatus.COMPLETED.value})
        _clear_cart(user_id, order_id)
        logger.info("checkout completed without payment order_id=%s user_id=%s", order_id, user_id)
        return CheckoutOutcome(kind=COMPLETED, order_id=order_id)

    session = gateway.create_payment_session(order=order, lines=lines, user=user, urls=urls)
    if session is None:
        orders_repository.update_order(
            order_id,
            {"status": OrderStatus.PAYMENT_FAILED.value, "payment_gateway": gateway.name},
        )
        _clear_cart(user_id, order_id)
        logger.warning("checkout payment session failed order_id=%s gateway=%s", order_id, gateway.name)
        return CheckoutOutcome(kind=PAYMENT_FAILED, order_id=order_id, gateway=gateway.name)

    orders_repository.update_order(
        order_id,
        {"payment_gateway": gateway.name, "payment_reference": session.reference},
    )
    _clear_cart(user_id, order_id)
    logger.info("checkout redirected order_id=%s gateway=%s", order_id, gateway.name)
    return CheckoutOutcome(kind=REDIRECT, order_id=order_id, redirect_url=session.url, gateway=gateway.name)


def finalize_payment(gateway: PaymentGateway, reference: str, *, user_id: Optional[str] = None) -> Optional[str]:
    """
    Clôt une commande à partir du retour passerelle.
    - Passe la commande en 'paid' seulement si la passerelle confirme le paiement.
    - user_id fourni: la mise à jour est restreinte au propriétaire (sinon: aucune écriture).
    - Retourne l’identifiant de la commande payée, ou None. Rejouer l’appel ne change rien.
    """
    confirmation = gateway.finalize(reference)
    if confirmation is None or not confirmation.order_id or not confirmation.paid:
        return None
    fields = {"status": OrderStatus.PAID.value, "payment_gateway": gateway.name}
    if confirmation.reference:
        fields["payment_reference"] = confirmation.reference
    if not orders_repository.update_order(confirmation.order_id, fields, user_id=user_id):
        logger.warning("payment finalisation ignored order_id=%s gateway=%s", confirmation.order_id, gateway.name)
        return None
    return confirmation.order_id
