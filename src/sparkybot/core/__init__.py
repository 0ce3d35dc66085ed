"""Core application components."""

from sparkybot.core.app import Dispatch, SparkyApp

__all__ = ["SparkyApp", "Dispatch"]
