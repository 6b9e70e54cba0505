# -*- coding: utf-8 -*-
"""Goals: persisted per-nutrient daily targets (partial mapping)."""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Mapping

from ..kv import JsonSlot, KeyValueStore

logger = logging.getLogger(__name__)


def _clean(raw: Any) -> Dict[str, float]:
    if not isinstance(raw, dict):
        return {}
    goals: Dict[str, float] = {}
    for key, value in raw.items():
        if not isinstance(key, str) or isinstance(value, bool) or not isinstance(value, (int, float)):
            logger.warning("Dropping malformed goal entry %r=%r", key, value)
            continue
        goals[key] = float(value)
    return goals


class GoalStore:
    def __init__(self, store: KeyValueStore, key: str = "nutrisnap_daily_goals") -> None:
        self.slot = JsonSlot(store, key)

    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        return self.slot.subscribe(callback)

    def get_daily_goals(self) -> Dict[str, float]:
        return _clean(self.slot.read(dict))

    def set_daily_goals(self, partial: Mapping[str, float]) -> Dict[str, float]:
        """Merge numeric targets from `partial`; non-numeric entries are dropped with a warning."""
        goals = self.get_daily_goals()
        goals.update(_clean(dict(partial)))
        self.slot.write(goals)
        return goals

    def remove_daily_goal(self, key: str) -> Dict[str, float]:
        goals = self.get_daily_goals()
        if key not in goals:
            return goals
        del goals[key]
        self.slot.write(goals)
        return goals
