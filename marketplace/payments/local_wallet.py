"""
Portefeuilles locaux (KBZ Pay, Wave Pay, MPU...): moyens enregistrés en base,
sans encaissement en ligne. Le checkout ne passe jamais par cette variante.
"""
from typing import Any, Dict, List

from marketplace.payment_methods import service as local_methods
from .base import INVALID, OK, PaymentGateway


class LocalWalletGateway(PaymentGateway):
    name = "local_wallet"

    def list_stored_methods(self, user: Dict[str, Any]) -> List[Dict[str, Any]]:
        return local_methods.list_methods(user["id"])

    def set_default(self, user: Dict[str, Any], method_id: str) -> str:
        return OK if local_methods.set_default(user["id"], method_id) else INVALID

    def remove(self, user: Dict[str, Any], method_id: str) -> str:
        return OK if local_methods.remove(user["id"], method_id) else INVALID
