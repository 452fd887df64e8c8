"""Two-asset liquidity pool protocol."""
from typing import Protocol

from .token import Token


class LiquidityPair(Token, Protocol):
    """Constant-product pool whose own token is the liquidity token."""

    def token0(self) -> str: ...

    def token1(self) -> str: ...

    def get_reserves(self) -> tuple[int, int, int]: ...

    async def mint(self, to: str) -> int: ...

    async def burn(self, to: str) -> tuple[int, int]: ...
