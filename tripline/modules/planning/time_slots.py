"""
modules/planning/time_slots.py
--------------------------------
Time-of-day category preferences for Jeju spots.

Slots are half-open hour ranges [start_hour, end_hour); outside every slot
(before 09:00, from 23:00) the score is neutral. Category names are the
Korean labels used by the catalog and match by substring, so "흑돼지맛집"
counts as 맛집.

score_time_category() → 0–30:
    15                  no active slot, or the spot has no categories
    30 | 10             any category preferred in this slot | otherwise
    −20                 any category avoided in this slot
    −10                 spot repeats the previous stop's category
    +15                 meal → café/dessert during the post-lunch slot
    clamped to [0, 30]
"""

from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from tripline.schemas.itinerary import CatalogSpot


@dataclass(frozen=True)
class TimeSlotPreference:
    start_hour: int
    end_hour: int
    preferred_categories: frozenset[str]
    avoid_categories: frozenset[str] = frozenset()
    label: str = ""

    def contains(self, at: datetime) -> bool:
        return self.start_hour <= at.hour < self.end_hour


def _slot(start: int, end: int, preferred: list[str], avoid: list[str], label: str) -> TimeSlotPreference:
    return TimeSlotPreference(start, end, frozenset(preferred), frozenset(avoid), label)


DEFAULT_TIME_SLOTS: tuple[TimeSlotPreference, ...] = (
    _slot(9, 11,  ["관광지", "자연", "오름", "포토존", "박물관"], ["맛집", "카페"], "morning sightseeing"),
    _slot(11, 13, ["맛집", "식당"],                             ["카페"],         "lunch"),
    _slot(13, 15, ["카페", "디저트"],                           ["맛집", "식당"], "post-lunch café"),
    _slot(15, 17, ["관광지", "포토존", "쇼핑", "자연"],         ["맛집"],         "afternoon sightseeing/shopping"),
    _slot(17, 19, ["일몰명소", "포토존", "해변", "카페"],       [],               "sunset viewpoints"),
    _slot(19, 21, ["맛집", "식당"],                             ["카페", "관광지"], "dinner"),
    _slot(21, 23, ["야경", "술집", "바"],                       ["관광지", "오름"], "evening nightlife"),
)


@dataclass(frozen=True)
class TimeSlotTable:
    slots: tuple[TimeSlotPreference, ...] = DEFAULT_TIME_SLOTS
    meal_categories: frozenset[str] = field(default_factory=lambda: frozenset({"맛집", "식당"}))
    cafe_categories: frozenset[str] = field(default_factory=lambda: frozenset({"카페", "디저트"}))
    post_meal_label: str = "post-lunch café"

    neutral_score: float = 15.0
    preferred_score: float = 30.0
    base_score: float = 10.0
    avoid_penalty: float = 20.0
    repeat_penalty: float = 10.0
    post_meal_cafe_bonus: float = 15.0
    max_score: float = 30.0


DEFAULT_TIME_SLOT_TABLE = TimeSlotTable()


def _matches(categories: tuple[str, ...], keywords: frozenset[str]) -> bool:
    return any(kw in cat for cat in categories for kw in keywords)


def find_time_slot(
    at: datetime,
    slots: tuple[TimeSlotPreference, ...] = DEFAULT_TIME_SLOTS,
) -> Optional[TimeSlotPreference]:
    for slot in slots:
        if slot.contains(at):
            return slot
    return None


def score_time_category(
    spot: CatalogSpot,
    current_time: datetime,
    last_visited_category: Optional[str] = None,
    table: TimeSlotTable = DEFAULT_TIME_SLOT_TABLE,
) -> float:
    slot = find_time_slot(current_time, table.slots)
    if slot is None or not spot.categories:
        return table.neutral_score

    cats = spot.categories
    score = table.preferred_score if _matches(cats, slot.preferred_categories) else table.base_score

    if _matches(cats, slot.avoid_categories):
        score -= table.avoid_penalty

    if last_visited_category and last_visited_category in cats:
        score -= table.repeat_penalty

    if (
        last_visited_category
        and any(meal in last_visited_category for meal in table.meal_categories)
        and slot.label == table.post_meal_label
        and _matches(cats, table.cafe_categories)
    ):
        score += table.post_meal_cafe_bonus

    return max(0.0, min(table.max_score, score))
