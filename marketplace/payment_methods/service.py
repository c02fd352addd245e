"""
Cas d'usage 'moyens de paiement locaux' (portefeuilles mobiles, cartes MPU).
Aucune vérification externe: l’identifiant saisi est stocké tel quel et affiché masqué.
"""
from typing import Any, Dict, List

from fastapi import HTTPException

from . import repository

TYPE_LABELS: Dict[str, str] = {
    "mpu": "MPU Debit Card",
    "kbz_pay": "KBZ Pay",
    "aya_pay": "AYA Pay",
    "wave_pay": "Wave Pay",
    "cb_pay": "CB Pay",
}

MAX_IDENTIFIER_LENGTH = 50


def mask_identifier(identifier: str) -> str:
    """Masque tout sauf les 4 derniers caractères ('****1234')."""
    identifier = identifier or ""
    if len(identifier) > 4:
        return "****" + identifier[-4:]
    return "****" + identifier


def serialize(method: Dict[str, Any]) -> Dict[str, Any]:
    mtype = method.get("type") or ""
    identifier = method.get("identifier") or ""
    return {
        "id": method.get("id"),
        "type": mtype,
        "type_label": TYPE_LABELS.get(mtype, mtype),
        "identifier_masked": mask_identifier(identifier),
        "is_default": bool(method.get("is_default")),
    }


def list_methods(user_id: str) -> List[Dict[str, Any]]:
    return [serialize(m) for m in repository.fetch_local_methods(user_id)]


def add_method(user_id: str, type: str, identifier: str) -> Dict[str, Any]:
    identifier = (identifier or "").strip()
    if type not in TYPE_LABELS:
        raise HTTPException(status_code=400, detail="Type de moyen de paiement invalide")
    if not identifier or len(identifier) > MAX_IDENTIFIER_LENGTH:
        raise HTTPException(status_code=400, detail="Identifiant invalide")
    row = repository.add_local_method(user_id=user_id, type=type, identifier=identifier)
    if not row:
        raise HTTPException(status_code=400, detail="Impossible d’ajouter le moyen de paiement")
    return serialize(row)


def set_default(user_id: str, method_id: str) -> bool:
    if not method_id:
        return False
    return repository.set_default_local_method(user_id=user_id, method_id=method_id)


def remove(user_id: str, method_id: str) -> bool:
    if not method_id:
        return False
    return repository.delete_local_method(user_id=user_id, method_id=method_id)
