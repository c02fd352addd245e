"""
Passerelle 2C2P (Myanmar): jeton de paiement signé HS256.

Flux:
  1) POST {"payload": jwt(requête)} vers l’API paymentToken
  2) réponse {"payload": jwt} -> respCode "0000" + webPaymentUrl + paymentToken
  3) retour navigateur / callback serveur: payload signé, vérifié avec la clé marchand

La commande voyage dans userDefined1; invoiceNo sert de référence externe.
"""
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional
import logging

import httpx
import jwt

from marketplace.config import ShopSettings
from .base import CheckoutLine, CheckoutUrls, GatewaySession, PaymentConfirmation, PaymentGateway

logger = logging.getLogger(__name__)

SUCCESS_CODE = "0000"
PAYMENT_CHANNELS = ["CC", "IPP", "MPU", "APM"]
REQUEST_TIMEOUT = 15


def invoice_number(order_id: Any) -> str:
    """invoiceNo 2C2P: alphanumérique, 50 caractères max."""
    return "".join(ch for ch in str(order_id) if ch.isalnum())[:50]


class TwoC2PGateway(PaymentGateway):
    name = "2c2p"

    def __init__(self, settings: ShopSettings, http_post: Optional[Callable[..., Any]] = None):
        self.settings = settings
        self._post = http_post or httpx.post

    def is_configured(self) -> bool:
        return self.settings.twoc2p_configured

    def create_payment_token(
        self,
        *,
        invoice_no: str,
        amount: Decimal,
        description: str,
        frontend_return_url: str,
        backend_return_url: str,
        order_id: Optional[str] = None,
    ) -> Optional[Dict[str, str]]:
        """
        Demande un jeton de paiement.
        Retour: {"webPaymentUrl", "paymentToken"} ou None (non configuré, erreur réseau,
        signature invalide, respCode différent de "0000").
        """
        if not self.is_configured():
            return None
        payload = {
            "merchantID": self.settings.twoc2p_merchant_id,
            "invoiceNo": invoice_no,
            "description": description,
            "amount": float(Decimal(amount).quantize(Decimal("0.01"))),
            "currencyCode": self.settings.currency.upper(),
            "paymentChannel": PAYMENT_CHANNELS,
            "frontendReturnUrl": frontend_return_url,
            "backendReturnUrl": backend_return_url,
            "locale": "en",
        }
        if order_id:
            payload["userDefined1"] = str(order_id)
        try:
            token = jwt.encode(payload, self.settings.twoc2p_secret_key, algorithm="HS256")
            resp = self._post(
                self.settings.twoc2p_payment_token_url,
                json={"payload": token},
                timeout=REQUEST_TIMEOUT,
            )
            resp.raise_for_status()
            body = resp.json() or {}
        except Exception as e:
            logger.warning("2C2P payment token request failed invoice_no=%s: %s", invoice_no, e)
            return None

        if not body.get("payload"):
            logger.warning("2C2P payment token rejected invoice_no=%s respCode=%s", invoice_no, body.get("respCode"))
            return None
        decoded = self.decode_payload(body["payload"])
        if not decoded or decoded.get("respCode") != SUCCESS_CODE:
            logger.warning(
                "2C2P payment token rejected invoice_no=%s respCode=%s",
                invoice_no,
                (decoded or {}).get("respCode"),
            )
            return None
        if not decoded.get("webPaymentUrl"):
            return None
        return {"webPaymentUrl": decoded["webPaymentUrl"], "paymentToken": decoded.get("paymentToken") or ""}

    def decode_payload(self, payload: str) -> Optional[Dict[str, Any]]:
        """Vérifie la signature HS256 et retourne le contenu, ou None."""
        if not payload or not self.settings.twoc2p_secret_key:
            return None
        try:
            return jwt.decode(payload, self.settings.twoc2p_secret_key, algorithms=["HS256"])
        except jwt.PyJWTError as e:
            logger.warning("2C2P payload rejected: %s", e)
            return None

    def create_payment_session(
        self,
        *,
        order: Dict[str, Any],
        lines: List[CheckoutLine],
        user: Dict[str, Any],
        urls: CheckoutUrls,
    ) -> Optional[GatewaySession]:
        invoice_no = invoice_number(order["id"])
        result = self.create_payment_token(
            invoice_no=invoice_no,
            amount=Decimal(str(order.get("total") or "0")),
            description=f"Order #{order['id']}",
            frontend_return_url=urls.return_url,
            backend_return_url=urls.callback_url,
            order_id=str(order["id"]),
        )
        if not result:
            return None
        return GatewaySession(reference=invoice_no, url=result["webPaymentUrl"])

    def finalize(self, reference: str) -> Optional[PaymentConfirmation]:
        """reference: payload signé reçu au retour ou au callback."""
        decoded = self.decode_payload(reference)
        if decoded is None:
            return None
        order_id = decoded.get("userDefined1")
        return PaymentConfirmation(
            order_id=str(order_id) if order_id else None,
            paid=decoded.get("respCode") == SUCCESS_CODE,
            reference=decoded.get("tranRef") or decoded.get("invoiceNo"),
        )
