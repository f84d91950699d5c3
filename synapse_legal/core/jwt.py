"""JWT verification for Supabase access tokens.

HS256 tokens are checked against the project's shared secret; RS256 and
ES256 tokens against the public key published in the project's JWKS.
"""

import base64
from typing import List, Optional, Union

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, rsa

from synapse_legal.core.jwks import JWKKey, JWKSService
from synapse_legal.schemas.auth import JWTClaims
from synapse_legal.utils.logging import get_logger

LOGGER = get_logger(__name__)

AUDIENCE = "authenticated"
REQUIRED_CLAIMS = ["sub", "email", "exp", "iat", "iss"]

_EC_CURVES = {
    "P-256": ec.SECP256R1,
    "P-384": ec.SECP384R1,
    "P-521": ec.SECP521R1,
}


def _base64url_decode(value: str) -> bytes:
    padding = -len(value) % 4
    return base64.urlsafe_b64decode(value + "=" * padding)


def _b64_int(value: Optional[str]) -> int:
    if not value:
        raise ValueError("JWK is missing a required component")
    return int.from_bytes(_base64url_decode(value), byteorder="big")


class JWTVerifier:
    """Verifies Supabase access tokens and returns their claims."""

    def __init__(
        self,
        supabase_url: str,
        jwt_secret: str = "",
        jwks_service: Optional[JWKSService] = None,
    ):
        """Initialize JWT verifier.

        Args:
            supabase_url: Supabase project URL for issuer validation
            jwt_secret: Shared secret for HS256 tokens
            jwks_service: Key source for RS256/ES256 tokens
        """
        self.supabase_url = supabase_url.rstrip("/")
        self.expected_issuer = f"{self.supabase_url}/auth/v1"
        self.jwt_secret = jwt_secret
        self.jwks_service = jwks_service

    async def verify_token(self, token: str) -> JWTClaims:
        """Verify and decode an access token.

        Args:
            token: Bearer token from the Authorization header

        Returns:
            Validated claims

        Raises:
            jwt.InvalidTokenError: If the token is malformed, expired, or
                signed with an unknown key
        """
        try:
            header = jwt.get_unverified_header(token)
            alg = header.get("alg")

            if alg == "HS256":
                if not self.jwt_secret:
                    raise jwt.InvalidTokenError("HS256 token received but no JWT secret is configured")
                return self._decode(token, self.jwt_secret, ["HS256"])

            if alg in ("RS256", "ES256"):
                key = await self._public_key_for(header.get("kid"))
                return self._decode(token, key, [alg])

            raise jwt.InvalidTokenError(f"Unsupported algorithm: {alg}")

        except jwt.ExpiredSignatureError as e:
            LOGGER.warning(f"Token expired: {e}")
            raise jwt.InvalidTokenError("Token has expired") from e
        except jwt.InvalidIssuerError as e:
            LOGGER.warning(f"Invalid issuer: {e}")
            raise jwt.InvalidTokenError("Invalid token issuer") from e
        except jwt.InvalidSignatureError as e:
            LOGGER.warning(f"Invalid signature: {e}")
            raise jwt.InvalidTokenError("Invalid token signature") from e
        except jwt.InvalidTokenError as e:
            LOGGER.warning(f"Invalid token: {e}")
            raise

    def _decode(self, token: str, key: Union[str, bytes], algorithms: List[str]) -> JWTClaims:
        payload = jwt.decode(
            token,
            key,
            algorithms=algorithms,
            audience=AUDIENCE,
            issuer=self.expected_issuer,
            options={"require": REQUIRED_CLAIMS},
        )
        claims = JWTClaims(**payload)
        LOGGER.debug(f"Verified token for user: {claims.sub}")
        return claims

    async def _public_key_for(self, kid: Optional[str]) -> str:
        if not kid:
            raise jwt.InvalidTokenError("JWT header missing 'kid' (key ID)")
        if self.jwks_service is None:
            raise jwt.InvalidTokenError("Asymmetric token received but JWKS is not configured")

        jwk_key = await self.jwks_service.get_key(kid)
        if jwk_key is None:
            # Keys may have rotated since the cache was filled
            self.jwks_service.invalidate()
            jwk_key = await self.jwks_service.get_key(kid)
        if jwk_key is None:
            raise jwt.InvalidTokenError(f"No matching key found for kid: {kid}")

        try:
            return self._jwk_to_pem(jwk_key)
        except ValueError as e:
            raise jwt.InvalidTokenError(str(e)) from e

    @staticmethod
    def _jwk_to_pem(jwk_key: JWKKey) -> str:
        """Convert an RSA or EC JWK into a PEM public key for PyJWT.

        Raises:
            ValueError: If the key type or curve is unsupported
        """
        if jwk_key.kty == "RSA":
            public_key = rsa.RSAPublicNumbers(_b64_int(jwk_key.e), _b64_int(jwk_key.n)).public_key()
        elif jwk_key.kty == "EC":
            curve = _EC_CURVES.get(jwk_key.crv or "")
            if curve is None:
                raise ValueError(f"Unsupported curve: {jwk_key.crv}")
            public_key = ec.EllipticCurvePublicNumbers(
                x=_b64_int(jwk_key.x),
                y=_b64_int(jwk_key.y),
                curve=curve(),
            ).public_key()
        else:
            raise ValueError(f"Unsupported key type: {jwk_key.kty}")

        pem = public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )
        return pem.decode("utf-8")
