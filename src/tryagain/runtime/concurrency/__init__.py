"""Cooperative cancellation primitives."""

from .scope import CancelScope, checkpoint

__all__ = ["CancelScope", "checkpoint"]
