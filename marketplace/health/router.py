from fastapi import APIRouter, Depends, Request

from marketplace.config import ShopSettings, get_settings
from marketplace.utils.rate_limit import rate_limit_health_info

router = APIRouter(prefix="/health", tags=["Health"])

@router.get("")
def health_root(request: Request, settings: ShopSettings = Depends(get_settings)):
    """Liveness + état du rate limiting + intégrations de paiement configurées (booléens)."""
    return {
        "ok": True,
        "rate_limit": rate_limit_health_info(request),
        "payments": {
            "stripe": settings.stripe_configured,
            "2c2p": settings.twoc2p_configured,
        },
    }
