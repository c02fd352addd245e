"""
Adaptateur Stripe: centralise les appels SDK et la configuration de la clé.
Aucune logique métier ici; les erreurs SDK remontent à l’appelant (StripeGateway).
"""
import stripe
from typing import Any, Dict, List

from marketplace.config import ShopSettings

# module marketplace.payments.stripe_client
def require_stripe(settings: ShopSettings) -> stripe:
    """
    Prépare et retourne le module stripe prêt à l’emploi.
    - Configure stripe.api_key depuis ShopSettings.stripe_secret_key.
    - Lève RuntimeError si Stripe n’est pas configuré.
    """
    if not settings.stripe_configured:
        raise RuntimeError("Stripe non configuré")
    stripe.api_key = settings.stripe_secret_key
    return stripe

def create_session(
    settings: ShopSettings,
    *,
    line_items: List[Dict[str, Any]],
    success_url: str,
    cancel_url: str,
    metadata: Dict[str, Any],
) -> Any:
    """
    Crée une session Stripe Checkout (mode paiement, cartes uniquement).
    Retour: objet session (id, url, payment_status, metadata).
    """
    require_stripe(settings)
    return stripe.checkout.Session.create(
        payment_method_types=["card"],
        line_items=line_items,
        mode="payment",
        success_url=success_url,
        cancel_url=cancel_url,
        metadata=metadata,
    )

def get_session(settings: ShopSettings, session_id: str) -> Any:
    require_stripe(settings)
    return stripe.checkout.Session.retrieve(session_id)

def create_customer(settings: ShopSettings, *, email: str, name: str) -> Any:
    require_stripe(settings)
    return stripe.Customer.create(email=email, name=name)

def retrieve_customer(settings: ShopSettings, customer_id: str) -> Any:
    require_stripe(settings)
    return stripe.Customer.retrieve(customer_id)

def set_customer_default_method(settings: ShopSettings, customer_id: str, payment_method_id: str) -> Any:
    require_stripe(settings)
    return stripe.Customer.modify(
        customer_id,
        invoice_settings={"default_payment_method": payment_method_id},
    )

def list_card_methods(settings: ShopSettings, customer_id: str) -> Any:
    require_stripe(settings)
    return stripe.PaymentMethod.list(customer=customer_id, type="card")

def retrieve_payment_method(settings: ShopSettings, payment_method_id: str) -> Any:
    require_stripe(settings)
    return stripe.PaymentMethod.retrieve(payment_method_id)

def detach_payment_method(settings: ShopSettings, payment_method_id: str) -> Any:
    require_stripe(settings)
    return stripe.PaymentMethod.detach(payment_method_id)

def create_setup_intent(settings: ShopSettings, customer_id: str) -> Any:
    """SetupIntent pour enregistrer une carte hors session (le client_secret est rendu au navigateur)."""
    require_stripe(settings)
    return stripe.SetupIntent.create(customer=customer_id, usage="off_session")
