"""
Passerelle Stripe: checkout hébergé + cartes enregistrées sur le client Stripe.

- La session de checkout porte metadata.order_id; la confirmation relit la session côté Stripe.
- Les cartes sont rattachées à un client Stripe créé à la demande (users.stripe_customer_id).
- Toute erreur SDK est journalisée et convertie en valeur neutre (None, [], UNAVAILABLE).
"""
from decimal import Decimal
from typing import Any, Dict, List, Optional
import logging

from marketplace.config import ShopSettings
from marketplace.users import repository as users_repository
from . import stripe_client
from .base import (
    INVALID,
    OK,
    UNAVAILABLE,
    CheckoutLine,
    CheckoutUrls,
    GatewaySession,
    PaymentConfirmation,
    PaymentGateway,
)
from .metadata import extract_order_id, field

logger = logging.getLogger(__name__)


def to_minor_units(amount: Decimal) -> int:
    """99.99 -> 9999 (centimes)."""
    return int((Decimal(amount) * 100).quantize(Decimal("1")))


def to_line_items(lines: List[CheckoutLine], currency: str) -> List[Dict[str, Any]]:
    return [
        {
            "price_data": {
                "currency": currency,
                "product_data": {"name": line.title},
                "unit_amount": to_minor_units(line.price),
            },
            "quantity": 1,
        }
        for line in lines
    ]


class StripeGateway(PaymentGateway):
    name = "stripe"

    def __init__(self, settings: ShopSettings):
        self.settings = settings

    def is_configured(self) -> bool:
        return self.settings.stripe_configured

    # --- Checkout ---

    def create_payment_session(
        self,
        *,
        order: Dict[str, Any],
        lines: List[CheckoutLine],
        user: Dict[str, Any],
        urls: CheckoutUrls,
    ) -> Optional[GatewaySession]:
        try:
            session = stripe_client.create_session(
                self.settings,
                line_items=to_line_items(lines, self.settings.currency),
                success_url=urls.success_url,
                cancel_url=urls.cancel_url,
                metadata={"order_id": str(order["id"])},
            )
        except Exception as e:
            logger.warning("Stripe checkout session failed order_id=%s: %s", order.get("id"), e)
            return None
        session_id = field(session, "id")
        url = field(session, "url")
        if not session_id or not url:
            logger.warning("Stripe checkout session incomplete order_id=%s", order.get("id"))
            return None
        return GatewaySession(reference=session_id, url=url)

    def finalize(self, reference: str) -> Optional[PaymentConfirmation]:
        if not reference:
            return None
        try:
            session = stripe_client.get_session(self.settings, reference)
        except Exception as e:
            logger.warning("Stripe session retrieve failed session_id=%s: %s", reference, e)
            return None
        return PaymentConfirmation(
            order_id=extract_order_id(session),
            paid=field(session, "payment_status") == "paid",
            reference=field(session, "id") or reference,
        )

    # --- Client Stripe / cartes enregistrées ---

    def ensure_customer(self, user: Dict[str, Any]) -> Optional[str]:
        """Identifiant client Stripe de l’utilisateur, créé et mémorisé au premier besoin."""
        customer_id = user.get("stripe_customer_id")
        if customer_id:
            return customer_id
        try:
            customer = stripe_client.create_customer(
                self.settings, email=user.get("email") or "", name=user.get("name") or ""
            )
        except Exception as e:
            logger.warning("Stripe customer creation failed user_id=%s: %s", user.get("id"), e)
            return None
        customer_id = field(customer, "id")
        if customer_id:
            users_repository.set_stripe_customer_id(user["id"], customer_id)
            user["stripe_customer_id"] = customer_id
        return customer_id

    def create_setup_intent(self, user: Dict[str, Any]) -> Optional[str]:
        """client_secret d’un SetupIntent pour enregistrer une carte, ou None."""
        customer_id = self.ensure_customer(user)
        if not customer_id:
            return None
        try:
            intent = stripe_client.create_setup_intent(self.settings, customer_id)
        except Exception as e:
            logger.warning("Stripe setup intent failed user_id=%s: %s", user.get("id"), e)
            return None
        return field(intent, "client_secret")

    def _default_method_id(self, customer_id: str) -> Optional[str]:
        customer = stripe_client.retrieve_customer(self.settings, customer_id)
        invoice_settings = field(customer, "invoice_settings") or {}
        default = field(invoice_settings, "default_payment_method")
        if default is not None and not isinstance(default, str):
            default = field(default, "id")
        return default

    def list_stored_methods(self, user: Dict[str, Any]) -> List[Dict[str, Any]]:
        """
        Cartes du client Stripe: [{id, brand, last4, exp_month, exp_year, is_default}].
        - Sans client Stripe: [].
        - Si aucune carte n’est marquée par défaut, la première est promue.
        """
        customer_id = user.get("stripe_customer_id")
        if not customer_id or not self.is_configured():
            return []
        try:
            default_id = self._default_method_id(customer_id)
            listing = stripe_client.list_card_methods(self.settings, customer_id)
        except Exception as e:
            logger.warning("Stripe payment methods listing failed user_id=%s: %s", user.get("id"), e)
            return []

        methods = []
        for pm in field(listing, "data") or []:
            card = field(pm, "card") or {}
            methods.append(
                {
                    "id": field(pm, "id"),
                    "brand": field(card, "brand"),
                    "last4": field(card, "last4"),
                    "exp_month": field(card, "exp_month"),
                    "exp_year": field(card, "exp_year"),
                    "is_default": field(pm, "id") == default_id,
                }
            )

        if methods and not any(m["is_default"] for m in methods):
            try:
                stripe_client.set_customer_default_method(self.settings, customer_id, methods[0]["id"])
                methods[0]["is_default"] = True
            except Exception as e:
                logger.warning("Stripe default card promotion failed user_id=%s: %s", user.get("id"), e)
        return methods

    def _owned_method(self, user: Dict[str, Any], method_id: str) -> Optional[str]:
        """Retourne le client Stripe si method_id lui est rattaché, sinon None."""
        customer_id = user.get("stripe_customer_id")
        if not customer_id:
            return None
        try:
            pm = stripe_client.retrieve_payment_method(self.settings, method_id)
        except Exception as e:
            logger.warning("Stripe payment method retrieve failed method_id=%s: %s", method_id, e)
            return None
        owner = field(pm, "customer")
        if owner is not None and not isinstance(owner, str):
            owner = field(owner, "id")
        return customer_id if owner == customer_id else None

    def set_default(self, user: Dict[str, Any], method_id: str) -> str:
        if not self.is_configured():
            return UNAVAILABLE
        try:
            customer_id = self._owned_method(user, method_id)
            if not customer_id:
                return INVALID
            stripe_client.set_customer_default_method(self.settings, customer_id, method_id)
        except Exception as e:
            logger.warning("Stripe set default card failed user_id=%s: %s", user.get("id"), e)
            return UNAVAILABLE
        return OK

    def remove(self, user: Dict[str, Any], method_id: str) -> str:
        if not self.is_configured():
            return UNAVAILABLE
        try:
            if not self._owned_method(user, method_id):
                return INVALID
            stripe_client.detach_payment_method(self.settings, method_id)
        except Exception as e:
            logger.warning("Stripe detach card failed user_id=%s: %s", user.get("id"), e)
            return UNAVAILABLE
        return OK
