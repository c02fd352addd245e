"""
Cas d'usage 'panier': consultation, ajout, retrait.
Les prix ne sont jamais stockés dans le panier: ils sont lus sur l’annonce au moment du calcul.
"""
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List

from fastapi import HTTPException

from . import repository

CENTS = Decimal("0.01")


def listing_of(item: Dict[str, Any]) -> Dict[str, Any]:
    """Annonce jointe à une ligne panier (clé 'listings' côté PostgREST)."""
    listing = item.get("listings") or item.get("listing") or {}
    return listing if isinstance(listing, dict) else {}


def listing_price(listing: Dict[str, Any]) -> Decimal:
    """
    Prix d’une annonce en Decimal (2 décimales).
    - Accepte str|float|int; 0.00 si absent ou illisible.
    """
    try:
        return Decimal(str(listing.get("price") or 0)).quantize(CENTS)
    except (InvalidOperation, ValueError):
        return Decimal("0.00")


def cart_total(items: List[Dict[str, Any]]) -> Decimal:
    return sum((listing_price(listing_of(i)) for i in items), Decimal("0.00"))


def cart_summary(user_id: str) -> Dict[str, Any]:
    items = repository.fetch_cart_items(user_id)
    return {
        "items": [
            {
                "id": i.get("id"),
                "listing_id": i.get("listing_id"),
                "listing": listing_of(i),
                "seller": listing_of(i).get("users"),
                "price": str(listing_price(listing_of(i))),
            }
            for i in items
        ],
        "total": str(cart_total(items)),
    }


def cart_context(user_id: str) -> Dict[str, Any]:
    """Contexte panier partagé par toutes les pages: nombre de lignes et annonces déjà ajoutées."""
    if not user_id:
        return {"cart_count": 0, "cart_listing_ids": []}
    return {
        "cart_count": repository.count_cart_items(user_id),
        "cart_listing_ids": repository.fetch_cart_listing_ids(user_id),
    }


def add_to_cart(user_id: str, listing_id: str) -> None:
    """
    Ajoute une annonce au panier (une unité par annonce).
    - 404 si l’annonce n’existe pas; 400 si l’utilisateur en est le vendeur.
    """
    listing = repository.get_listing(listing_id)
    if not listing:
        raise HTTPException(status_code=404, detail="Annonce introuvable")
    if str(listing.get("user_id")) == str(user_id):
        raise HTTPException(status_code=400, detail="Vous ne pouvez pas ajouter votre propre annonce au panier.")
    if not repository.add_cart_item(user_id, listing_id):
        raise HTTPException(status_code=400, detail="Impossible d’ajouter l’annonce au panier.")


def remove_from_cart(user_id: str, listing_id: str) -> None:
    repository.remove_cart_item(user_id, listing_id)
