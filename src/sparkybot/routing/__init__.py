"""Intent routing - keyword and AI classifiers behind one router."""

from __future__ import annotations

from sparkybot.routing.ai import AIClassifier
from sparkybot.routing.keyword import KeywordClassifier, SubstringMatcher
from sparkybot.routing.router import SkillRouter

__all__ = ["AIClassifier", "KeywordClassifier", "SkillRouter", "SubstringMatcher"]
