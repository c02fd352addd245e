from fastapi import Request, HTTPException, Depends
from typing import Dict, Any, Optional

from marketplace.users import repository as users_repository

COOKIE_NAME = "sb_access"

def _token_from_request(request: Request) -> str:
    # Hybride: priorité au Bearer, fallback cookie
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[7:].strip()
        if token:
            return token
    return request.cookies.get(COOKIE_NAME) or ""

def get_current_user(request: Request) -> Dict[str, Any]:
    """
    Résout le token Supabase en utilisateur applicatif:
    {id, email, name, stripe_customer_id}.
    """
    token = _token_from_request(request)
    if not token:
        raise HTTPException(status_code=401, detail="Non authentifié")

    try:
        raw = users_repository.get_user_from_access_token(token)
    except Exception:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")
    uid = raw.get("id")
    if not uid:
        raise HTTPException(status_code=401, detail="Session expirée, veuillez vous connecter")

    profile = users_repository.get_user_by_id(uid) or {}
    metadata = raw.get("user_metadata") or {}
    return {
        "id": uid,
        "email": raw.get("email") or profile.get("email"),
        "name": profile.get("name") or metadata.get("full_name") or "",
        "stripe_customer_id": profile.get("stripe_customer_id"),
    }

def require_user(user: Dict[str, Any] = Depends(get_current_user)) -> Dict[str, Any]:
    return user

def get_optional_user(request: Request) -> Optional[Dict[str, Any]]:
    """Utilisateur courant pour les contextes partagés (visiteur anonyme: None)."""
    if not _token_from_request(request):
        return None
    try:
        return get_current_user(request)
    except HTTPException:
        return None
