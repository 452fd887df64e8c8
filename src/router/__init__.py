"""Leveraged-position router core."""
from .altair import AltairRouter
from .continuation import ContinuationCodec, authenticate
from .converter import ValueConverter
from .swap_adapter import SwapRouterAdapter

__all__ = [
    "AltairRouter",
    "ContinuationCodec",
    "SwapRouterAdapter",
    "ValueConverter",
    "authenticate",
]
