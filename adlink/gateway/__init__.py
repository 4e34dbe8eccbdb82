"""
Gateway interstitial: short codes, countdown, per-visit state machine.
"""

from adlink.gateway.controller import AdPhase, GatewayController, GatewayState, ProceedResult
from adlink.gateway.countdown import Countdown
from adlink.gateway.registry import GatewayRegistry, Visit
from adlink.gateway.shortcode import build_short_url, generate_short_code, is_short_code

__all__ = [
    "AdPhase",
    "Countdown",
    "GatewayController",
    "GatewayRegistry",
    "GatewayState",
    "ProceedResult",
    "Visit",
    "build_short_url",
    "generate_short_code",
    "is_short_code",
]
