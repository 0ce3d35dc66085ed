"""
Skills subsystem - skill catalog, durable stores and the registry.

Skills are loaded from (first that works):
- Supabase `skills` table
- local SQLite `skills` table
- skills.yaml / skills.json
- the built-in catalog in `sparkybot.skills.defaults`
"""

from __future__ import annotations

from sparkybot.skills.models import AutonomyLevel, RoutingResult, SkillDescriptor
from sparkybot.skills.registry import SkillRegistry, SkillRegistryError

__all__ = ["AutonomyLevel", "RoutingResult", "SkillDescriptor", "SkillRegistry", "SkillRegistryError"]
