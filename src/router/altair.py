"""The assembled router contract."""
from __future__ import annotations

import logging
import secrets

from ..config import RouterConfig
from ..interfaces.environment import ExecutionEnvironment
from .continuation import ContinuationCodec
from .converter import ValueConverter
from .deleverage import DeleverageOrchestrator
from .leverage import LeverageOrchestrator
from .liquidation import LiquidationOrchestrator
from .swap_adapter import SwapRouterAdapter

logger = logging.getLogger(__name__)


class AltairRouter(LeverageOrchestrator, DeleverageOrchestrator, LiquidationOrchestrator):
    """Leveraged-position router for one lending deployment.

    Registers itself with ``env`` on construction; the continuation secret is
    generated per instance unless given.
    """

    def __init__(
        self,
        env: ExecutionEnvironment,
        config: RouterConfig,
        route_finder: str,
        secret: bytes | None = None,
    ) -> None:
        self.address = env.register(self, "altair-router")
        self._swapper = SwapRouterAdapter(env, self.address, route_finder, config.venues)
        converter = ValueConverter(
            env,
            self.address,
            self._swapper,
            usdc=config.usdc,
            native_token=config.native_token,
            swap_fee=config.swap_fee,
        )
        codec = ContinuationCodec(secret or secrets.token_bytes(32))
        super().__init__(env, config, codec, converter)

        logger.info(
            "Router %s ready (usdc=%s, native=%s, venues=%s)",
            self.address, config.usdc, config.native_token,
            ", ".join(v.value for v in self._swapper.venues),
        )

    @property
    def converter(self) -> ValueConverter:
        return self._converter
