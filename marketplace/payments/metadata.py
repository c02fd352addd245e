"""
Lecture tolérante des objets Stripe (StripeObject ou dict) et des métadonnées de session.
"""
from typing import Any, Optional

# module marketplace.payments.metadata
def field(obj: Any, name: str, default: Any = None) -> Any:
    """Accès obj[name] ou obj.name; default si absent."""
    if obj is None:
        return default
    if isinstance(obj, dict):
        return obj.get(name, default)
    try:
        return obj[name]
    except (KeyError, TypeError, IndexError):
        pass
    return getattr(obj, name, default)

def extract_order_id(session: Any) -> Optional[str]:
    """
    Extrait l’identifiant de commande depuis session.metadata.order_id.
    - Retourne None si la métadonnée est absente ou vide.
    """
    meta = field(session, "metadata") or {}
    order_id = field(meta, "order_id")
    return str(order_id) if order_id else None
