# module marketplace.infra.supabase_client
"""
Clients Supabase paresseux (créés au premier appel, puis réutilisés).
- get_supabase: clé anon, lectures publiques (annonces) et vérification des jetons.
- get_service_supabase: clé service-role (RLS contournée) pour les écritures serveur:
  panier, commandes, moyens de paiement locaux, stripe_customer_id.
"""
from typing import Dict
from supabase import create_client, Client
from marketplace.config import SUPABASE_URL, SUPABASE_ANON, SUPABASE_SERVICE_KEY

_clients: Dict[str, Client] = {}

def _client(role: str, key: str, missing: str) -> Client:
    if role not in _clients:
        if not SUPABASE_URL or not key:
            raise RuntimeError(f"{missing} manquant(s) pour le client Supabase '{role}'")
        _clients[role] = create_client(SUPABASE_URL, key)
    return _clients[role]

def get_supabase() -> Client:
    return _client("anon", SUPABASE_ANON, "SUPABASE_URL/SUPABASE_ANON_KEY")

def get_service_supabase() -> Client:
    return _client("service", SUPABASE_SERVICE_KEY, "SUPABASE_URL/SUPABASE_SERVICE_KEY")
