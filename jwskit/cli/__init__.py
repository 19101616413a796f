"""jwskit CLI tools.

Usage:
    jwskit sign --key hmac.jwk --alg HS256 payload.txt
    jwskit verify --key hmac.jwk --alg HS256 signed.jws
"""

from .jws_cli import main

__all__ = ["main"]
