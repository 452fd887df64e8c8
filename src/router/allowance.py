"""Idempotent token approvals."""
from __future__ import annotations

from ..interfaces.environment import ExecutionEnvironment
from ..interfaces.token import Token
from .math import MAX_UINT256


async def approve_token(
    env: ExecutionEnvironment, owner: str, token: str, spender: str, amount: int
) -> None:
    """Approve ``spender`` for the maximum amount unless the allowance already covers ``amount``."""
    erc20: Token = env.at(token, owner)
    if erc20.allowance(owner, spender) >= amount:
        return
    await erc20.approve(spender, MAX_UINT256)
