"""
Résolution de la région boutique (SG, MM, US) pour une requête.

Ordre de résolution:
  1) cookie `user_timezone` (fuseau navigateur) via une table fuseau -> région
  2) géolocalisation IP (service externe), mise en cache par IP pour REGION_CACHE_TTL
  3) région par défaut si IP locale/privée ou si la recherche échoue

La région pilote la devise affichée et les moyens de paiement proposés;
elle n’a aucune valeur d’autorisation.
"""
from typing import Any, Optional
import ipaddress
import logging
import urllib.parse

import httpx
from fastapi import Depends, Request

from marketplace.config import ShopSettings, get_settings

logger = logging.getLogger(__name__)

TIMEZONE_COOKIE = "user_timezone"
CACHE_PREFIX = "region_from_ip:"


def is_local_ip(ip: Optional[str]) -> bool:
    """True pour une IP absente, invalide, loopback, privée ou réservée."""
    if not ip:
        return True
    try:
        addr = ipaddress.ip_address(ip.strip())
    except ValueError:
        return True
    return addr.is_private or addr.is_loopback or addr.is_link_local or addr.is_reserved or addr.is_unspecified


class RegionResolver:
    def __init__(self, settings: ShopSettings, cache: Any = None):
        self.settings = settings
        # cache: client redis.asyncio (get/set ex=) ou None
        self.cache = cache

    async def detect(self, request: Request) -> str:
        ip = request.client.host if request.client else None
        return await self.resolve(request.cookies.get(TIMEZONE_COOKIE), ip)

    async def resolve(self, timezone: Optional[str], ip: Optional[str]) -> str:
        region = self.from_timezone(timezone)
        if region is not None:
            return region
        return await self.from_ip(ip)

    def from_timezone(self, timezone: Optional[str]) -> Optional[str]:
        if not timezone:
            return None
        tz = urllib.parse.unquote(timezone).strip()
        return self.settings.timezone_to_region.get(tz)

    async def from_ip(self, ip: Optional[str]) -> str:
        default = self.settings.default_region
        if is_local_ip(ip):
            return default

        key = f"{CACHE_PREFIX}{ip}"
        cached = await self._cache_get(key)
        if cached:
            return cached

        country = await self.fetch_country_code(ip)
        if not country:
            return default
        region = self.settings.country_to_region.get(country.upper(), default)
        await self._cache_set(key, region)
        return region

    async def fetch_country_code(self, ip: str) -> Optional[str]:
        """Interroge le service de géolocalisation; None sur erreur ou timeout (pas de retry)."""
        url = f"{self.settings.geoip_lookup_url.rstrip('/')}/{ip}"
        try:
            async with httpx.AsyncClient(timeout=self.settings.geoip_timeout) as client:
                resp = await client.get(url, params={"fields": "countryCode"})
            if resp.status_code != 200:
                return None
            return (resp.json() or {}).get("countryCode")
        except Exception as e:
            logger.warning("region.fetch_country_code failed ip=%s: %s", ip, e)
            return None

    async def _cache_get(self, key: str) -> Optional[str]:
        if self.cache is None:
            return None
        try:
            value = await self.cache.get(key)
        except Exception as e:
            logger.warning("region cache get failed key=%s: %s", key, e)
            return None
        if isinstance(value, bytes):
            value = value.decode("utf-8")
        return value or None

    async def _cache_set(self, key: str, region: str) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(key, region, ex=self.settings.region_cache_ttl)
        except Exception as e:
            logger.warning("region cache set failed key=%s: %s", key, e)


async def get_region(request: Request, settings: ShopSettings = Depends(get_settings)) -> str:
    """Dépendance FastAPI: région de la requête courante."""
    cache = getattr(request.app.state, "redis", None)
    return await RegionResolver(settings, cache=cache).detect(request)
