"""
Sélection de la passerelle selon la région.

- Checkout: premières passerelles configurées dans CHECKOUT_GATEWAYS[région]
  (MM: 2C2P puis Stripe; ailleurs: Stripe). None => commande finalisée sans paiement.
- Page « moyens de paiement »: SG -> cartes Stripe, MM -> portefeuilles locaux.
- Action sur un moyen enregistré: identifiant "pm_..." -> Stripe, sinon moyen local.
"""
from typing import Dict, Optional, Tuple, Type

from marketplace.config import ShopSettings
from .base import PaymentGateway
from .local_wallet import LocalWalletGateway
from .stripe_gateway import StripeGateway
from .twoc2p import TwoC2PGateway

GATEWAYS: Dict[str, Type[PaymentGateway]] = {
    StripeGateway.name: StripeGateway,
    TwoC2PGateway.name: TwoC2PGateway,
    LocalWalletGateway.name: LocalWalletGateway,
}

CHECKOUT_GATEWAYS: Dict[str, Tuple[str, ...]] = {
    "MM": (TwoC2PGateway.name, StripeGateway.name),
}
DEFAULT_CHECKOUT_GATEWAYS: Tuple[str, ...] = (StripeGateway.name,)

STORED_METHODS_GATEWAY: Dict[str, str] = {
    "SG": StripeGateway.name,
    "MM": LocalWalletGateway.name,
}

STRIPE_METHOD_PREFIX = "pm_"


def build_gateway(name: str, settings: ShopSettings) -> PaymentGateway:
    cls = GATEWAYS[name]
    if cls is LocalWalletGateway:
        return cls()
    return cls(settings)


def checkout_gateway_for(region: Optional[str], settings: ShopSettings) -> Optional[PaymentGateway]:
    for name in CHECKOUT_GATEWAYS.get(region or "", DEFAULT_CHECKOUT_GATEWAYS):
        gateway = build_gateway(name, settings)
        if gateway.is_configured():
            return gateway
    return None


def stored_methods_gateway_for(region: Optional[str], settings: ShopSettings) -> Optional[PaymentGateway]:
    name = STORED_METHODS_GATEWAY.get(region or "")
    return build_gateway(name, settings) if name else None


def gateway_for_method(method_id: str, settings: ShopSettings) -> PaymentGateway:
    if (method_id or "").startswith(STRIPE_METHOD_PREFIX):
        return build_gateway(StripeGateway.name, settings)
    return build_gateway(LocalWalletGateway.name, settings)
