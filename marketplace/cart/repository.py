"""
Accès aux données pour le panier (tables listings, cart_items).
Un panier est une liste de lignes (user_id, listing_id), unique par couple, sans quantité.
"""
from typing import Any, Dict, List, Optional
import logging
import marketplace.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

CART_SELECT = (
    "id, listing_id, created_at, "
    "listings(id, title, price, image_path, condition, user_id, users(id, name, region))"
)

def get_listing(listing_id: str) -> Optional[Dict[str, Any]]:
    if not listing_id:
        return None
    try:
        res = (
            supabase_client.get_supabase()
            .table("listings")
            .select("id, title, price, user_id")
            .eq("id", str(listing_id))
            .limit(1)
            .execute()
        )
        rows = res.data or []
        return rows[0] if rows else None
    except Exception:
        logger.exception("cart.repository.get_listing failed listing_id=%s", listing_id)
        return None

def fetch_cart_items(user_id: str) -> List[Dict[str, Any]]:
    """
    Lignes du panier jointes avec l’annonce (prix courant), plus récentes d’abord.
    - Retourne [] si user_id vide ou en cas d’erreur.
    """
    if not user_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("cart_items")
            .select(CART_SELECT)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("cart.repository.fetch_cart_items failed user_id=%s", user_id)
        return []

def add_cart_item(user_id: str, listing_id: str) -> bool:
    """Ajout idempotent (upsert sur la contrainte unique user_id+listing_id)."""
    try:
        (
            supabase_client.get_service_supabase()
            .table("cart_items")
            .upsert(
                {"user_id": user_id, "listing_id": str(listing_id)},
                on_conflict="user_id,listing_id",
                ignore_duplicates=True,
            )
            .execute()
        )
        return True
    except Exception:
        logger.exception("cart.repository.add_cart_item failed user_id=%s listing_id=%s", user_id, listing_id)
        return False

def remove_cart_item(user_id: str, listing_id: str) -> bool:
    try:
        (
            supabase_client.get_service_supabase()
            .table("cart_items")
            .delete()
            .eq("user_id", user_id)
            .eq("listing_id", str(listing_id))
            .execute()
        )
        return True
    except Exception:
        logger.exception("cart.repository.remove_cart_item failed user_id=%s listing_id=%s", user_id, listing_id)
        return False

def clear_cart(user_id: str) -> bool:
    try:
        supabase_client.get_service_supabase().table("cart_items").delete().eq("user_id", user_id).execute()
        return True
    except Exception:
        logger.exception("cart.repository.clear_cart failed user_id=%s", user_id)
        return False

def count_cart_items(user_id: str) -> int:
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("cart_items")
            .select("id", count="exact")
            .eq("user_id", user_id)
            .execute()
        )
        if res.count is not None:
            return int(res.count)
        return len(res.data or [])
    except Exception:
        logger.exception("cart.repository.count_cart_items failed user_id=%s", user_id)
        return 0

def fetch_cart_listing_ids(user_id: str) -> List[str]:
    """Identifiants des annonces du panier (badge « dans le panier » sur les cartes d’annonce)."""
    if not user_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("cart_items")
            .select("listing_id")
            .eq("user_id", user_id)
            .execute()
        )
        return [str(r["listing_id"]) for r in (res.data or []) if r.get("listing_id")]
    except Exception:
        logger.exception("cart.repository.fetch_cart_listing_ids failed user_id=%s", user_id)
        return []
