"""OAuth 2.0 authorization for the Google Hangouts Chat action."""

from .broker import CredentialBroker

__all__ = ["CredentialBroker"]
