"""
Accès aux données pour les moyens de paiement locaux (table local_payment_methods).

Invariant: au plus une ligne is_default=true par utilisateur. Les écritures qui
touchent plusieurs lignes passent par des fonctions SQL atomiques (RPC), adossées
à un index unique partiel (user_id) WHERE is_default.
"""
from typing import Any, Dict, List, Optional
import logging
import marketplace.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

def fetch_local_methods(user_id: str) -> List[Dict[str, Any]]:
    """Moyens locaux de l’utilisateur: défaut d’abord, puis par date de création."""
    if not user_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("local_payment_methods")
            .select("id, type, identifier, is_default, created_at")
            .eq("user_id", user_id)
            .order("is_default", desc=True)
            .order("created_at", desc=False)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("payment_methods.repository.fetch_local_methods failed user_id=%s", user_id)
        return []

def add_local_method(*, user_id: str, type: str, identifier: str) -> Optional[Dict[str, Any]]:
    """Insère un moyen local; il devient le défaut s’il est le premier de l’utilisateur."""
    try:
        res = (
            supabase_client.get_service_supabase()
            .rpc("add_local_payment_method", {"p_user_id": user_id, "p_type": type, "p_identifier": identifier})
            .execute()
        )
        data = res.data
        if isinstance(data, list):
            return data[0] if data else None
        return data or None
    except Exception:
        logger.exception("payment_methods.repository.add_local_method failed user_id=%s", user_id)
        return None

def set_default_local_method(*, user_id: str, method_id: str) -> bool:
    """
    Bascule du défaut en une transaction (ancien défaut retiré, nouveau posé).
    - Retourne False si method_id n’appartient pas à l’utilisateur (aucune ligne modifiée).
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .rpc("set_default_local_payment_method", {"p_user_id": user_id, "p_method_id": method_id})
            .execute()
        )
        return bool(res.data)
    except Exception:
        logger.exception("payment_methods.repository.set_default_local_method failed user_id=%s", user_id)
        return False

def delete_local_method(*, user_id: str, method_id: str) -> bool:
    """
    Supprime un moyen local et, s’il était le défaut, promeut un moyen restant (même transaction).
    - Retourne False si method_id n’appartient pas à l’utilisateur.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .rpc("delete_local_payment_method", {"p_user_id": user_id, "p_method_id": method_id})
            .execute()
        )
        return bool(res.data)
    except Exception:
        logger.exception("payment_methods.repository.delete_local_method failed user_id=%s", user_id)
        return False
