"""Continuation payloads: serialization and callback authentication.

A flow that hands control to an external component (borrow, flash redeem)
packs its Position Context into an opaque payload. The component passes the
payload back unchanged when it re-enters the router, and the router only
continues once:

1. the payload carries a valid tag under this router's secret,
2. the reported initiator is the router itself,
3. the caller is the component named inside the payload.
"""
from __future__ import annotations

import hashlib
import hmac
import json
import logging
from dataclasses import asdict, fields
from typing import TypeVar

from ..errors import CallerNotExpectedComponent, InvalidPayload, NotRouterInitiator
from ..models import DeleverageCalldata, LeverageCalldata

logger = logging.getLogger(__name__)

TAG_SIZE = hashlib.sha256().digest_size

Calldata = TypeVar("Calldata", LeverageCalldata, DeleverageCalldata)


class ContinuationCodec:
    """Tamper-evident (de)serialization of Position Contexts."""

    def __init__(self, secret: bytes) -> None:
        if len(secret) < 16:
            raise ValueError("Continuation secret must be at least 16 bytes")
        self._secret = secret

    def _tag(self, body: bytes) -> bytes:
        return hmac.new(self._secret, body, hashlib.sha256).digest()

    def encode(self, context: LeverageCalldata | DeleverageCalldata) -> bytes:
        body = json.dumps(
            {"kind": context.KIND, "context": asdict(context)},
            sort_keys=True,
            separators=(",", ":"),
        ).encode()
        return self._tag(body) + body

    def decode(self, payload: bytes, calldata_type: type[Calldata]) -> Calldata:
        """Verify and decode ``payload`` into ``calldata_type``."""
        if len(payload) <= TAG_SIZE:
            raise InvalidPayload("Payload too short")

        tag, body = payload[:TAG_SIZE], payload[TAG_SIZE:]
        if not hmac.compare_digest(tag, self._tag(body)):
            raise InvalidPayload("Payload tag mismatch")

        try:
            raw = json.loads(body)
        except ValueError as e:
            raise InvalidPayload(f"Payload body is not valid JSON: {e}") from e

        if raw.get("kind") != calldata_type.KIND:
            raise InvalidPayload(
                f"Expected {calldata_type.KIND} payload, got {raw.get('kind')!r}"
            )

        context = raw.get("context", {})
        expected = {f.name for f in fields(calldata_type)}
        if set(context) != expected:
            raise InvalidPayload(f"Malformed {calldata_type.KIND} payload")
        return calldata_type(**context)


def authenticate(initiator: str, router: str, caller: str, expected: str) -> None:
    """Run the dual identity check every continuation must pass."""
    if initiator != router:
        logger.warning("Rejected continuation initiated by %s", initiator)
        raise NotRouterInitiator(initiator)
    if caller != expected:
        logger.warning("Rejected continuation from %s (expected %s)", caller, expected)
        raise CallerNotExpectedComponent(caller, expected)
