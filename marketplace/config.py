# marketplace.config
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional
import os
from dotenv import load_dotenv

# Calculer le chemin du projet puis charger .env de manière explicite
BASE_DIR = Path(__file__).resolve().parent.parent
ENV_PATH = BASE_DIR / ".env"
load_dotenv(dotenv_path=ENV_PATH, override=False)

"""
Configuration centrale de la marketplace.

- Charge le fichier .env à la racine du projet (BASE_DIR/.env)
- Normalise et expose les secrets/URLs (Supabase, Stripe, 2C2P), sécurité cookies, CORS/hosts
- Expose les tables de régions (devises, libellés) et la région par défaut
- Construit ShopSettings, la vue figée injectée dans les services (Depends(get_settings))
"""

def _clean_env(v: str) -> str:
    """
    Nettoie une valeur d'environnement:
    - supprime les espaces et guillemets (simples, doubles) et backticks
    - retourne toujours une chaîne (jamais None)
    """
    return (v or "").strip().strip("'").strip('"').strip("`")

# Supabase: URL et clés (anon/service)
SUPABASE_URL = _clean_env(os.getenv("SUPABASE_URL") or "")
SUPABASE_ANON = _clean_env(os.getenv("SUPABASE_ANON_KEY") or "")
SUPABASE_SERVICE_KEY = _clean_env(os.getenv("SUPABASE_SERVICE_KEY") or "")

if SUPABASE_URL and not SUPABASE_URL.startswith("http"):
    SUPABASE_URL = "https://" + SUPABASE_URL
if SUPABASE_URL.endswith("/"):
    SUPABASE_URL = SUPABASE_URL.rstrip("/")

# Cookies / sécurité
COOKIE_SECURE = (os.getenv("COOKIE_SECURE", "false").lower() == "true")
SESSION_SECRET_KEY = os.getenv("SESSION_SECRET_KEY", "replace_me_with_a_long_random_secret")

# CORS (dev)
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
ALLOWED_HOSTS = [h.strip() for h in os.getenv("ALLOWED_HOSTS", "localhost,127.0.0.1,testserver").split(",") if h.strip()]

# Stripe (passerelle carte, checkout hébergé)
STRIPE_PUBLIC_KEY = _clean_env(os.getenv("STRIPE_PUBLIC_KEY") or "")
STRIPE_SECRET_KEY = _clean_env(os.getenv("STRIPE_SECRET_KEY") or "")

# 2C2P (passerelle à jeton signé, Myanmar)
TWOC2P_MERCHANT_ID = _clean_env(os.getenv("TWOC2P_MERCHANT_ID") or "")
TWOC2P_SECRET_KEY = _clean_env(os.getenv("TWOC2P_SECRET_KEY") or "")
TWOC2P_PAYMENT_TOKEN_URL = _clean_env(
    os.getenv("TWOC2P_PAYMENT_TOKEN_URL") or "https://sandbox-pgw.2c2p.com/payment/4.3/paymentToken"
)

# Boutique: région par défaut, devise d'encaissement, langue
SHOP_REGION = _clean_env(os.getenv("SHOP_REGION") or "MM").upper()
SHOP_CURRENCY = _clean_env(os.getenv("SHOP_CURRENCY") or "usd").lower()
APP_LOCALE = _clean_env(os.getenv("APP_LOCALE") or "en")

# Géolocalisation IP (résolution de région)
GEOIP_LOOKUP_URL = _clean_env(os.getenv("GEOIP_LOOKUP_URL") or "http://ip-api.com/json/")
GEOIP_TIMEOUT = float(os.getenv("GEOIP_TIMEOUT", "3"))
REGION_CACHE_TTL = int(os.getenv("REGION_CACHE_TTL", str(60 * 60 * 24)))


# Tables de régions
TIMEZONE_TO_REGION: Dict[str, str] = {
    "Asia/Singapore": "SG",
    "Asia/Yangon": "MM",
    "Asia/Rangoon": "MM",
}

COUNTRY_TO_REGION: Dict[str, str] = {
    "SG": "SG",
    "MM": "MM",
    "US": "US",
}

REGION_LABELS: Dict[str, str] = {
    "SG": "Singapore",
    "MM": "Myanmar",
    "US": "United States",
}

# code = ISO 4217, symbol = affichage, decimals = décimales affichées (MMK: 0)
CURRENCIES: Dict[str, Dict[str, object]] = {
    "SG": {"code": "SGD", "symbol": "S$", "decimals": 2},
    "MM": {"code": "MMK", "symbol": "K", "decimals": 0},
    "US": {"code": "USD", "symbol": "$", "decimals": 2},
}
DEFAULT_CURRENCY: Dict[str, object] = {"code": "USD", "symbol": "$", "decimals": 2}

LOCALES = ("en", "zh", "my")


@dataclass(frozen=True)
class ShopSettings:
    """Configuration injectée dans le checkout, les passerelles et le résolveur de région.
    Les branches « non configuré » se testent en surchargeant get_settings.
    """
    stripe_public_key: str = ""
    stripe_secret_key: str = ""
    twoc2p_merchant_id: str = ""
    twoc2p_secret_key: str = ""
    twoc2p_payment_token_url: str = TWOC2P_PAYMENT_TOKEN_URL
    default_region: str = "MM"
    currency: str = "usd"
    default_locale: str = "en"
    geoip_lookup_url: str = "http://ip-api.com/json/"
    geoip_timeout: float = 3.0
    region_cache_ttl: int = 60 * 60 * 24
    timezone_to_region: Dict[str, str] = field(default_factory=lambda: dict(TIMEZONE_TO_REGION))
    country_to_region: Dict[str, str] = field(default_factory=lambda: dict(COUNTRY_TO_REGION))

    @property
    def stripe_configured(self) -> bool:
        return bool(self.stripe_secret_key)

    @property
    def twoc2p_configured(self) -> bool:
        return bool(self.twoc2p_merchant_id and self.twoc2p_secret_key)

    def currency_for(self, region: Optional[str]) -> Dict[str, object]:
        return dict(CURRENCIES.get(region or "", DEFAULT_CURRENCY))


_settings: Optional[ShopSettings] = None

def get_settings() -> ShopSettings:
    """Dépendance FastAPI: ShopSettings construit une seule fois depuis l'environnement."""
    global _settings
    if _settings is None:
        _settings = ShopSettings(
            stripe_public_key=STRIPE_PUBLIC_KEY,
            stripe_secret_key=STRIPE_SECRET_KEY,
            twoc2p_merchant_id=TWOC2P_MERCHANT_ID,
            twoc2p_secret_key=TWOC2P_SECRET_KEY,
            twoc2p_payment_token_url=TWOC2P_PAYMENT_TOKEN_URL,
            default_region=SHOP_REGION,
            currency=SHOP_CURRENCY,
            default_locale=APP_LOCALE,
            geoip_lookup_url=GEOIP_LOOKUP_URL,
            geoip_timeout=GEOIP_TIMEOUT,
            region_cache_ttl=REGION_CACHE_TTL,
        )
    return _settings
