# module marketplace.cart.views
"""Endpoints du panier.
- GET /cart: lignes + total (props de page, rendu côté client)
- POST /listings/{listing_id}/cart: ajout (intent=buy -> redirection vers /cart)
- DELETE /listings/{listing_id}/cart: retrait
"""
from typing import Any, Dict, Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, Request

from marketplace.cart import service as cart_service
from marketplace.utils.redirects import back_url, redirect_with
from marketplace.utils.security import require_user

logger = logging.getLogger(__name__)
router = APIRouter(tags=["Cart"])


@router.get("/cart", name="cart_index")
def cart_index(request: Request, user: Dict[str, Any] = Depends(require_user)) -> Dict[str, Any]:
    summary = cart_service.cart_summary(user["id"])
    summary["flash"] = {
        "status": request.query_params.get("status"),
        "error": request.query_params.get("error"),
    }
    return summary


@router.post("/listings/{listing_id}/cart")
def add_listing_to_cart(
    listing_id: str,
    request: Request,
    intent: Optional[str] = None,
    user: Dict[str, Any] = Depends(require_user),
):
    try:
        cart_service.add_to_cart(user["id"], listing_id)
    except HTTPException as e:
        if e.status_code == 404:
            raise
        return redirect_with(back_url(request, "/cart"), error=str(e.detail))
    if intent == "buy":
        return redirect_with("/cart", status="Ajouté au panier.")
    return redirect_with(back_url(request, "/cart"), status="Ajouté au panier.")


@router.delete("/listings/{listing_id}/cart")
def remove_listing_from_cart(listing_id: str, request: Request, user: Dict[str, Any] = Depends(require_user)):
    cart_service.remove_from_cart(user["id"], listing_id)
    return redirect_with(back_url(request, "/cart"), status="Retiré du panier.")
