"""
Module 'payments' (feature-first): point d'entrée public.
Réunit l’interface passerelle, les variantes Stripe / 2C2P / portefeuilles locaux et leur sélection par région.
"""

from .base import (
    OK,
    INVALID,
    UNAVAILABLE,
    CheckoutLine,
    CheckoutUrls,
    GatewaySession,
    PaymentConfirmation,
    PaymentGateway,
)
from .local_wallet import LocalWalletGateway
from .metadata import extract_order_id
from .registry import checkout_gateway_for, gateway_for_method, stored_methods_gateway_for
from .stripe_gateway import StripeGateway, to_line_items
from .twoc2p import TwoC2PGateway

__all__ = [
    # interface
    "OK",
    "INVALID",
    "UNAVAILABLE",
    "CheckoutLine",
    "CheckoutUrls",
    "GatewaySession",
    "PaymentConfirmation",
    "PaymentGateway",
    # variantes
    "StripeGateway",
    "TwoC2PGateway",
    "LocalWalletGateway",
    "to_line_items",
    "extract_order_id",
    # sélection
    "checkout_gateway_for",
    "stored_methods_gateway_for",
    "gateway_for_method",
]
