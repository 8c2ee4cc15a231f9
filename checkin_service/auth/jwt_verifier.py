"""Keycloak token verification"""
import logging
import time
import requests
from jose import jwt
from typing import Dict, Optional

logger = logging.getLogger(__name__)

# Keycloak rotates realm keys; refetch the key set at least this often
JWKS_TTL_SECONDS = 3600


class JWTVerifier:
    """Verifies realm access tokens against the realm's published signing keys"""

    def __init__(
        self,
        keycloak_url: str,
        realm: str,
        algorithm: str = "RS256",
        audience: Optional[str] = None,
    ):
        self.algorithm = algorithm
        self.audience = audience
        self.issuer = f"{keycloak_url.rstrip('/')}/realms/{realm}"
        self.jwks_url = f"{self.issuer}/protocol/openid-connect/certs"
        self._jwks: Optional[Dict] = None
        self._jwks_fetched_at = 0.0

    def _signing_keys(self, force_refresh: bool = False) -> Dict:
        expired = time.monotonic() - self._jwks_fetched_at > JWKS_TTL_SECONDS
        if self._jwks is None or expired or force_refresh:
            response = requests.get(self.jwks_url, timeout=10)
            response.raise_for_status()
            self._jwks = response.json()
            self._jwks_fetched_at = time.monotonic()
        return self._jwks

    def _decode(self, token: str, keys: Dict) -> Dict:
        return jwt.decode(
            token,
            keys,
            algorithms=[self.algorithm],
            issuer=self.issuer,
            audience=self.audience,
            options={"verify_aud": self.audience is not None},
        )

    def verify_and_decode(self, token: str) -> Dict:
        """
        Verify the token signature, issuer and expiry and return its claims.

        A token signed with a key id missing from the cached key set triggers
        one refetch before it is rejected.

        Raises:
            JWTError: Token is invalid or expired
            requests.RequestException: Signing keys could not be fetched
        """
        keys = self._signing_keys()
        kid = jwt.get_unverified_header(token).get("kid")
        known = {key.get("kid") for key in keys.get("keys", [])}
        if kid and kid not in known:
            logger.info(f"Unknown signing key {kid}; refreshing key set")
            keys = self._signing_keys(force_refresh=True)

        return self._decode(token, keys)
