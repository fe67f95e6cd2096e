"""
Token verification pipeline: decode, allow-list, resolve key, verify, check claims.
"""

import json
import math
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from jose import jwk, jws, jwt
from jose.exceptions import JOSEError

from shared.logging import get_logger
from shared.metrics import MetricsCollector

from ..config import ValidatorConfig
from ..errors import (
    AlgorithmNotAllowed,
    ClaimsInvalid,
    JwksFetchError,
    JwksUnavailable,
    KidMissing,
    MalformedToken,
    SignatureInvalid,
    TokenMissing,
    VerificationFailure,
)
from ..jwks.resolver import KeyResolver
from ..models import Claims, KeyRecord, TokenHeader, VerificationResult

_NUMERIC_CLAIMS = ("exp", "nbf", "iat")


class TokenVerifier:
    """Verifies a signed identity token against the configured key set."""

    def __init__(
        self,
        config: ValidatorConfig,
        resolver: KeyResolver,
        *,
        clock: Callable[[], float] = time.time,
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        self.config = config
        self.resolver = resolver
        self.metrics = metrics
        self.logger = get_logger("edge_auth.validator")
        self._clock = clock

    async def verify(self, token: Any) -> VerificationResult:
        """Verify ``token`` and return its claims, header and signing key.

        Raises a `VerificationFailure` subclass describing the first check
        that failed.
        """
        try:
            result = await self._verify(token)
        except VerificationFailure as exc:
            self._record(exc.kind.lower())
            if isinstance(exc, SignatureInvalid):
                self.logger.warning(
                    "Signature verification failed, possible forged credential",
                    **exc.details,
                )
            else:
                self.logger.warning("Token verification failed", kind=exc.kind, error=exc.message)
            raise

        self._record("valid")
        self.logger.info(
            "Token verified successfully",
            sub=result.claims.subject,
            kid=result.header.key_id,
        )
        return result

    async def _verify(self, token: Any) -> VerificationResult:
        if not isinstance(token, str) or not token:
            raise TokenMissing()

        header = self._decode_header(token)
        if not header.key_id:
            raise KidMissing()
        if header.algorithm not in self.config.algorithms:
            raise AlgorithmNotAllowed(header.algorithm)

        try:
            record = await self.resolver.resolve_key(header.key_id, header.algorithm)
        except JwksFetchError as exc:
            raise JwksUnavailable(exc.message, details=exc.details) from exc

        payload = self._verify_signature(token, header, record)
        self._validate_claims(payload)

        return VerificationResult(
            claims=Claims.from_payload(payload),
            header=header,
            signing_key=record,
            jwks_source=self.config.jwks_uri,
        )

    def _decode_header(self, token: str) -> TokenHeader:
        try:
            raw = jwt.get_unverified_header(token)
        except JOSEError as exc:
            raise MalformedToken(f"Malformed token: {exc}") from exc

        kid = raw.get("kid")
        if kid is not None and not isinstance(kid, str):
            raise MalformedToken("JWT header kid must be a string")
        return TokenHeader.from_dict(raw)

    def _verify_signature(self, token: str, header: TokenHeader, record: KeyRecord) -> Dict[str, Any]:
        try:
            key = jwk.construct(dict(record.jwk), header.algorithm)
        except (JOSEError, ValueError) as exc:
            raise JwksUnavailable(
                f"Signing key {record.key_id} could not be loaded: {exc}",
                details={"kid": record.key_id},
            ) from exc

        try:
            signed_payload = jws.verify(token, key, algorithms=[header.algorithm])
        except JOSEError as exc:
            raise SignatureInvalid(
                details={"kid": record.key_id, "alg": header.algorithm, "error": str(exc)},
            ) from exc

        try:
            payload = json.loads(signed_payload)
        except ValueError as exc:
            raise MalformedToken("Token payload is not valid JSON") from exc
        if not isinstance(payload, dict):
            raise MalformedToken("Token payload must be a JSON object")
        return payload

    def _validate_claims(self, payload: Mapping[str, Any]) -> None:
        for name in _NUMERIC_CLAIMS:
            value = payload.get(name)
            if value is not None:
                _check_timestamp(name, value)

        if self.config.issuer and payload.get("iss") != self.config.issuer:
            raise ClaimsInvalid(ClaimsInvalid.ISSUER_MISMATCH, 'unexpected "iss" claim value')

        expected = self.config.expected_audiences
        if expected:
            aud = payload.get("aud")
            token_audiences = [aud] if isinstance(aud, str) else aud if isinstance(aud, list) else []
            if not any(audience in token_audiences for audience in expected):
                raise ClaimsInvalid(ClaimsInvalid.AUDIENCE_MISMATCH, 'unexpected "aud" claim value')

        now = self._clock()
        leeway = self.config.clock_skew_seconds

        nbf = payload.get("nbf")
        if nbf is not None and nbf > now + leeway:
            raise ClaimsInvalid(ClaimsInvalid.NOT_YET_VALID, '"nbf" claim timestamp check failed')

        exp = payload.get("exp")
        if exp is not None and exp <= now - leeway:
            raise ClaimsInvalid(ClaimsInvalid.EXPIRED, '"exp" claim timestamp check failed')

    def _record(self, status: str) -> None:
        if self.metrics is not None:
            self.metrics.record_token_validation(status)


def _check_timestamp(name: str, value: Any) -> None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise MalformedToken(f'"{name}" claim must be a number')
    try:
        # NaN and infinities are not timestamps.
        if not math.isfinite(value):
            raise ValueError(value)
        datetime.fromtimestamp(value, tz=timezone.utc)
    except (OverflowError, ValueError, OSError) as exc:
        raise MalformedToken(f'"{name}" claim is not a usable timestamp') from exc
