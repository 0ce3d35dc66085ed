"""
SkillRegistry - the authoritative set of enabled skills.

Skills are loaded from a durable store when one is configured. Any store
error, an empty result, or a skill set that fails validation falls back to
the built-in catalog, so the registry is never empty after load().
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from loguru import logger
from pydantic import ValidationError

from sparkybot.skills.defaults import DEFAULT_SKILLS
from sparkybot.skills.models import SkillDescriptor
from sparkybot.skills.store import SkillStore


class SkillRegistryError(ValueError):
    """A candidate skill set cannot be installed in the registry."""


def validate_skills(skills: Sequence[SkillDescriptor]) -> SkillDescriptor:
    """
    Check a candidate skill set and return its fallback skill.

    Ids must be unique and exactly one enabled skill may have an empty
    trigger vocabulary.
    """
    seen: set[str] = set()
    for skill in skills:
        if skill.id in seen:
            raise SkillRegistryError(f"duplicate skill id: {skill.id}")
        seen.add(skill.id)

    fallbacks = [s for s in skills if s.enabled and s.is_fallback]
    if len(fallbacks) != 1:
        ids = ", ".join(s.id for s in fallbacks) or "none"
        raise SkillRegistryError(f"expected exactly one fallback skill, found {len(fallbacks)} ({ids})")
    return fallbacks[0]


class SkillRegistry:
    """
    Hold the loaded skills.

    The skill list and its fallback are swapped together as one tuple on
    every successful load, so readers never observe a partial update.
    """

    def __init__(
        self,
        store: Optional[SkillStore] = None,
        *,
        defaults: Optional[Iterable[SkillDescriptor]] = None,
    ) -> None:
        self._store = store
        self._defaults: Tuple[SkillDescriptor, ...] = tuple(defaults if defaults is not None else DEFAULT_SKILLS)
        self._state: Optional[Tuple[Tuple[SkillDescriptor, ...], SkillDescriptor]] = None
        self._source = "none"
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        return self._state is not None

    @property
    def source(self) -> str:
        """Where the current skill set came from: "store", "defaults" or "none"."""
        return self._source

    async def ensure_loaded(self) -> None:
        if self._state is None:
            await self.load()

    async def load(self) -> None:
        """
        Replace the skill set from the store, or from the built-in list.

        Never raises for store problems. Only a malformed built-in list
        (a programming error) propagates.
        """
        async with self._lock:
            skills = await self._load_from_store()
            if skills is not None:
                try:
                    fallback = validate_skills(skills)
                    self._state = (tuple(skills), fallback)
                    self._source = "store"
                    logger.info(f"Loaded {len(skills)} skills from store")
                    return
                except SkillRegistryError as e:
                    logger.warning(f"Rejected skills from store: {e}")

            fallback = validate_skills(self._defaults)
            self._state = (self._defaults, fallback)
            self._source = "defaults"
            logger.info(f"Using {len(self._defaults)} default skills")

    async def _load_from_store(self) -> Optional[List[SkillDescriptor]]:
        if self._store is None:
            return None

        try:
            rows = await self._store.fetch_enabled()
        except Exception as e:
            logger.warning(f"Failed to load skills from store, using defaults: {e}")
            return None

        skills = self._parse_rows(rows or [])
        if not skills:
            logger.warning("Skill store returned no usable skills, using defaults")
            return None
        return skills

    @staticmethod
    def _parse_rows(rows: Iterable[Dict[str, Any]]) -> List[SkillDescriptor]:
        skills: List[SkillDescriptor] = []
        for row in rows:
            try:
                skill = SkillDescriptor.model_validate(row)
            except ValidationError as e:
                logger.warning(f"Skipping invalid skill row {row.get('id')!r}: {e}")
                continue
            if skill.enabled:
                skills.append(skill)
        return skills

    def _snapshot(self) -> Tuple[Tuple[SkillDescriptor, ...], Optional[SkillDescriptor]]:
        state = self._state
        if state is None:
            return (), None
        return state

    def get_by_id(self, skill_id: str) -> Optional[SkillDescriptor]:
        sid = str(skill_id or "").strip()
        if not sid:
            return None
        skills, _ = self._snapshot()
        for skill in skills:
            if skill.id == sid:
                return skill
        return None

    def list_enabled(self) -> List[SkillDescriptor]:
        """Enabled skills in load order (classifiers rely on this order for ties)."""
        skills, _ = self._snapshot()
        return [s for s in skills if s.enabled]

    @property
    def fallback(self) -> Optional[SkillDescriptor]:
        _, fallback = self._snapshot()
        return fallback

    def describe(self) -> List[Dict[str, Any]]:
        return [
            {
                "id": s.id,
                "name": s.name,
                "description": s.description,
                "autonomy_level": s.autonomy_level.value,
                "trigger_patterns": list(s.trigger_patterns),
                "dependencies": list(s.dependencies),
                "fallback": s.is_fallback,
            }
            for s in self.list_enabled()
        ]
