"""
SparkyBot - personal assistant bot.

Routes free-form chat messages to capability skills (calendar, email,
market, reminders, kanban, social, code execution) or to a general
conversational fallback, and gates actions that need user approval.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "0.1.0"

if TYPE_CHECKING:
    from sparkybot.core.app import SparkyApp as SparkyApp

__all__ = ["SparkyApp", "__version__"]


def __getattr__(name: str):
    # Lazy import to keep `import sparkybot.skills` free of app-level dependencies.
    if name == "SparkyApp":
        from sparkybot.core.app import SparkyApp  # local import

        return SparkyApp
    raise AttributeError(name)
