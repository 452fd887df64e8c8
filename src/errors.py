"""Router failures. Raising any of these aborts the enclosing transaction."""
from __future__ import annotations


class RouterError(Exception):
    """Base class for every failure raised by the router."""


class Expired(RouterError):
    def __init__(self, deadline: int, timestamp: int) -> None:
        super().__init__(f"Transaction expired: deadline {deadline} < now {timestamp}")
        self.deadline = deadline
        self.timestamp = timestamp


class NotRouterInitiator(RouterError):
    def __init__(self, initiator: str) -> None:
        super().__init__(f"Continuation initiated by {initiator}, not by the router")
        self.initiator = initiator


class CallerNotExpectedComponent(RouterError):
    def __init__(self, caller: str, expected: str) -> None:
        super().__init__(f"Continuation called by {caller}, expected {expected}")
        self.caller = caller
        self.expected = expected


class InvalidPayload(RouterError):
    """Continuation payload failed authentication or could not be decoded."""


class InsufficientLiquidityMinted(RouterError):
    def __init__(self, liquidity: int, minimum: int) -> None:
        super().__init__(f"Minted {liquidity} liquidity, minimum is {minimum}")
        self.liquidity = liquidity
        self.minimum = minimum


class InsufficientUsdcReceived(RouterError):
    def __init__(self, amount: int, minimum: int) -> None:
        super().__init__(f"Received {amount} USDC, minimum is {minimum}")
        self.amount = amount
        self.minimum = minimum


class InvalidRedeemAmount(RouterError):
    def __init__(self, redeem_tokens: int) -> None:
        super().__init__(f"Redeem amount must be positive, got {redeem_tokens}")
        self.redeem_tokens = redeem_tokens
