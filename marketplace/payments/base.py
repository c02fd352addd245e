"""
Interface commune des passerelles de paiement.

Chaque variante (Stripe, 2C2P, portefeuilles locaux) implémente les capacités
qu’elle possède; les autres gardent le comportement par défaut « indisponible »
(None / [] / UNAVAILABLE). Le checkout et la page des moyens de paiement ne
connaissent que cette interface.
"""
from abc import ABC
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, List, Optional

# Résultat d’une action sur un moyen enregistré
OK = "ok"
INVALID = "invalid"
UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class CheckoutLine:
    listing_id: str
    title: str
    price: Decimal


@dataclass(frozen=True)
class CheckoutUrls:
    success_url: str
    cancel_url: str
    return_url: str
    callback_url: str


@dataclass(frozen=True)
class GatewaySession:
    """Session démarrée: url de redirection + référence externe mémorisée sur la commande."""
    reference: str
    url: str


@dataclass(frozen=True)
class PaymentConfirmation:
    order_id: Optional[str]
    paid: bool
    reference: Optional[str] = None


class PaymentGateway(ABC):
    name = ""

    def is_configured(self) -> bool:
        return False

    def create_payment_session(
        self,
        *,
        order: Dict[str, Any],
        lines: List[CheckoutLine],
        user: Dict[str, Any],
        urls: CheckoutUrls,
    ) -> Optional[GatewaySession]:
        return None

    def finalize(self, reference: str) -> Optional[PaymentConfirmation]:
        """Lit le résultat d’un paiement (session id, payload signé...); None si illisible."""
        return None

    def list_stored_methods(self, user: Dict[str, Any]) -> List[Dict[str, Any]]:
        return []

    def set_default(self, user: Dict[str, Any], method_id: str) -> str:
        return UNAVAILABLE

    def remove(self, user: Dict[str, Any], method_id: str) -> str:
        return UNAVAILABLE
