from typing import Any, Dict

from fastapi import APIRouter, Depends, Request

from marketplace.orders import repository as orders_repository
from marketplace.orders.models import HISTORY_STATUSES
from marketplace.utils.security import require_user

router = APIRouter(tags=["Orders"])


@router.get("/settings/orders", name="orders_index")
def orders_index(request: Request, user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    """Historique des commandes avec leur statut: en attente, payées, finalisées hors ligne ou en échec de paiement."""
    return {
        "orders": orders_repository.fetch_user_orders(user["id"], HISTORY_STATUSES),
        "flash": {
            "status": request.query_params.get("status"),
            "error": request.query_params.get("error"),
        },
    }
