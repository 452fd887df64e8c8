"""Unit tests for continuation payload encoding and the dual identity check."""
from __future__ import annotations

import pytest

from src.errors import CallerNotExpectedComponent, InvalidPayload, NotRouterInitiator
from src.models import DeleverageCalldata, LeverageCalldata
from src.router.continuation import TAG_SIZE, ContinuationCodec, authenticate

SECRET = b"0123456789abcdef0123456789abcdef"


@pytest.fixture()
def codec() -> ContinuationCodec:
    return ContinuationCodec(SECRET)


@pytest.fixture()
def leverage_context() -> LeverageCalldata:
    return LeverageCalldata("0xpair", "0xcollateral", "0xborrowable", "0xrecipient", 42)


class TestContinuationCodec:
    def test_short_secret_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least 16 bytes"):
            ContinuationCodec(b"short")

    def test_decode_restores_context(
        self, codec: ContinuationCodec, leverage_context: LeverageCalldata
    ) -> None:
        payload = codec.encode(leverage_context)
        assert codec.decode(payload, LeverageCalldata) == leverage_context

    def test_deleverage_defaults_survive(self, codec: ContinuationCodec) -> None:
        context = DeleverageCalldata("0xpair", "0xcoll", "0xborr", "0xme", 10**18)
        decoded = codec.decode(codec.encode(context), DeleverageCalldata)
        assert decoded.usdc_amount_min == 0
        assert decoded.redeem_tokens == 10**18

    def test_truncated_payload(self, codec: ContinuationCodec) -> None:
        with pytest.raises(InvalidPayload, match="too short"):
            codec.decode(b"\x00" * TAG_SIZE, LeverageCalldata)

    def test_tampered_body(
        self, codec: ContinuationCodec, leverage_context: LeverageCalldata
    ) -> None:
        payload = codec.encode(leverage_context).replace(b"0xrecipient", b"0xattacker")
        with pytest.raises(InvalidPayload, match="tag mismatch"):
            codec.decode(payload, LeverageCalldata)

    def test_wrong_kind(
        self, codec: ContinuationCodec, leverage_context: LeverageCalldata
    ) -> None:
        with pytest.raises(InvalidPayload, match="Expected deleverage"):
            codec.decode(codec.encode(leverage_context), DeleverageCalldata)

    def test_other_secret(self, leverage_context: LeverageCalldata) -> None:
        payload = ContinuationCodec(b"another-secret-of-16+bytes").encode(leverage_context)
        with pytest.raises(InvalidPayload):
            ContinuationCodec(SECRET).decode(payload, LeverageCalldata)


class TestAuthenticate:
    def test_passes_when_both_match(self) -> None:
        authenticate("0xrouter", "0xrouter", "0xborrowable", "0xborrowable")

    def test_foreign_initiator(self) -> None:
        with pytest.raises(NotRouterInitiator) as exc_info:
            authenticate("0xattacker", "0xrouter", "0xborrowable", "0xborrowable")
        assert exc_info.value.initiator == "0xattacker"

    def test_unexpected_caller(self) -> None:
        with pytest.raises(CallerNotExpectedComponent):
            authenticate("0xrouter", "0xrouter", "0xattacker", "0xborrowable")

    def test_initiator_checked_first(self) -> None:
        with pytest.raises(NotRouterInitiator):
            authenticate("0xattacker", "0xrouter", "0xattacker", "0xborrowable")
