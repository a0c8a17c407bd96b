"""Authenticated encryption for state carried by the host and browser."""

from .envelope import StateCodec

__all__ = ["StateCodec"]
