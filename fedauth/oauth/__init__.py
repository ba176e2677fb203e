"""
OAuth2 building blocks: PKCE, the redirect listener, token polling and
browser launch.
"""

from .pkce import CHALLENGE_METHOD, generate_code_challenge, generate_code_verifier
from .listener import REDIRECT_PATH, CallbackListener
from .polling import DEFAULT_POLL_INTERVAL, poll_for_token
from .browser import open_browser

__all__ = [
    "CHALLENGE_METHOD",
    "generate_code_challenge",
    "generate_code_verifier",
    "REDIRECT_PATH",
    "CallbackListener",
    "DEFAULT_POLL_INTERVAL",
    "poll_for_token",
    "open_browser",
]
