"""Security adapters - Password hashing and token handling."""

from .hasher import BcryptPasswordHasher
from .tokens import JwtTokenService

__all__ = ["BcryptPasswordHasher", "JwtTokenService"]
