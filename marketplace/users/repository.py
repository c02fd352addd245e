"""Couche d’accès aux données (Supabase) pour le profil utilisateur.
Table users: id, email, name, region, stripe_customer_id.
Les exceptions sont « catchées » et transformées en valeurs neutres (None, False).
"""
from typing import Any, Dict, Optional
import logging
from marketplace.infra import supabase_client

logger = logging.getLogger(__name__)

def get_user_from_access_token(access_token: str) -> Dict[str, Any]:
    """Récupère et normalise l’utilisateur depuis supabase.auth.get_user(access_token)."""
    res = supabase_client.get_supabase().auth.get_user(access_token)
    user = getattr(res, "user", None) or {}
    if not isinstance(user, dict):
        user = {
            "id": getattr(user, "id", None),
            "email": getattr(user, "email", None),
            "user_metadata": getattr(user, "user_metadata", None),
        }
    return user or {}

def get_user_by_id(user_id: str) -> Optional[dict]:
    if not user_id:
        return None
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("users")
            .select("id, email, name, region, stripe_customer_id")
            .eq("id", user_id)
            .single()
            .execute()
        )
        return res.data or None
    except Exception:
        logger.exception("users.repository.get_user_by_id failed user_id=%s", user_id)
        return None

def set_stripe_customer_id(user_id: str, customer_id: str) -> bool:
    """Mémorise l’identifiant client Stripe sur le profil (cache de l’identité externe)."""
    try:
        (
            supabase_client.get_service_supabase()
            .table("users")
            .update({"stripe_customer_id": customer_id})
            .eq("id", user_id)
            .execute()
        )
        return True
    except Exception:
        logger.exception("users.repository.set_stripe_customer_id failed user_id=%s", user_id)
        return False
