"""
Mutable per-player progress snapshot and its JSON (de)serialization.
"""

from datetime import datetime, timezone
from typing import Dict, Set

import orjson
from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ProgressState(BaseModel):
    """
    Counters and unlock records for one player profile.

    Every counter only grows, except ``characteristic_consecutive_counts``
    which drops back to 0 when a run of matching landings is broken.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total_flips: int = 0
    heads_flips: int = 0
    tails_flips: int = 0
    longest_streak: int = 0
    longest_heads_streak: int = 0
    longest_tails_streak: int = 0
    coin_land_counts: Dict[str, int] = Field(default_factory=dict)
    random_unlocked_coins: Set[str] = Field(default_factory=set)
    coin_unlock_timestamps: Dict[str, datetime] = Field(default_factory=dict)
    notification_shown_for: Set[str] = Field(default_factory=set)
    characteristic_consecutive_counts: Dict[str, int] = Field(default_factory=dict)

    @field_serializer("random_unlocked_coins", "notification_shown_for")
    def _sorted_paths(self, value: Set[str]):
        return sorted(value)

    def get_land_count(self, path: str) -> int:
        return self.coin_land_counts.get(path, 0)

    def get_consecutive_count(self, path: str) -> int:
        return self.characteristic_consecutive_counts.get(path, 0)

    def record_streak(self, streak: int, is_heads: bool):
        """Raise the longest-streak counters to ``streak`` where it beats them."""
        if is_heads:
            self.longest_heads_streak = max(self.longest_heads_streak, streak)
        else:
            self.longest_tails_streak = max(self.longest_tails_streak, streak)
        self.longest_streak = max(self.longest_streak, streak)

    def stamp_unlock(self, path: str, when: datetime = None) -> bool:
        """Record the first unlock time of ``path``. Returns False if already stamped."""
        if path in self.coin_unlock_timestamps:
            return False
        self.coin_unlock_timestamps[path] = when or utc_now()
        return True

    def copy_state(self) -> "ProgressState":
        return self.model_copy(deep=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> bytes:
        return orjson.dumps(self.to_dict())

    @classmethod
    def from_json(cls, blob) -> "ProgressState":
        """Parse a stored blob. Missing fields load as their zero value."""
        data = orjson.loads(blob)
        if data is None:
            return cls()
        return cls.model_validate(data)
