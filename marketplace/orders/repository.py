"""
Accès aux données pour les commandes (tables orders, order_items).
La création commande + lignes passe par une fonction SQL (une transaction):
voir supabase/migrations/0002_checkout_functions.sql.
"""
from typing import Any, Dict, Iterable, List, Optional
import logging
import marketplace.infra.supabase_client as supabase_client

logger = logging.getLogger(__name__)

ORDER_SELECT = (
    "id, status, total, payment_gateway, payment_reference, created_at, "
    "order_items(id, listing_id, quantity, price, listings(id, title, image_path, price))"
)

def _first(data: Any) -> Optional[Dict[str, Any]]:
    if isinstance(data, list):
        return data[0] if data else None
    return data or None

def create_order_with_items(*, user_id: str, total: str, items: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """
    Crée la commande 'pending' et ses lignes de manière atomique.
    - items: [{"listing_id", "quantity": 1, "price": "99.99"}] (prix figés)
    - Retourne la ligne orders créée, ou None en cas d’erreur.
    """
    try:
        res = (
            supabase_client.get_service_supabase()
            .rpc("create_order_with_items", {"p_user_id": user_id, "p_total": total, "p_items": items})
            .execute()
        )
        return _first(res.data)
    except Exception:
        logger.exception("orders.repository.create_order_with_items failed user_id=%s", user_id)
        return None

def update_order(order_id: str, fields: Dict[str, Any], *, user_id: Optional[str] = None) -> bool:
    """
    Met à jour une commande; si user_id est fourni, la mise à jour est restreinte au propriétaire.
    - Retourne True si au moins une ligne a été modifiée.
    """
    try:
        query = supabase_client.get_service_supabase().table("orders").update(fields).eq("id", order_id)
        if user_id is not None:
            query = query.eq("user_id", user_id)
        res = query.execute()
        return bool(res.data)
    except Exception:
        logger.exception("orders.repository.update_order failed order_id=%s", order_id)
        return False

def fetch_user_orders(user_id: str, statuses: Iterable[str]) -> List[Dict[str, Any]]:
    """Commandes de l’utilisateur (jointure lignes + annonces), plus récentes d’abord."""
    if not user_id:
        return []
    try:
        res = (
            supabase_client.get_service_supabase()
            .table("orders")
            .select(ORDER_SELECT)
            .eq("user_id", user_id)
            .in_("status", list(statuses))
            .order("created_at", desc=True)
            .execute()
        )
        return res.data or []
    except Exception:
        logger.exception("orders.repository.fetch_user_orders failed user_id=%s", user_id)
        return []
