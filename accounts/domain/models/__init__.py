"""Domain models for the account service."""

from .session import ImpersonationContext, Session
from .social_login import SocialLogin, SocialProfile
from .user import User

__all__ = [
    "ImpersonationContext",
    "Session",
    "SocialLogin",
    "SocialProfile",
    "User",
]
