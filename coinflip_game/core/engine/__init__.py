"""Coin unlock rules engine: conditions, effects and per-flip tracking."""

from .catalog import CoinCatalog
from .characteristics import update_characteristic_counts
from .conditions import (
    get_progress_description,
    get_progress_percent,
    is_condition_met,
    is_unlocked,
    prerequisites_met,
)
from .effects import (
    FlipResolution,
    apply_combo_streak_bonus,
    auto_click_interval,
    heads_probability,
    luck_chance_multiplier,
    resolve_flip,
)
from .models import CoinDefinition
from .progress import ProgressState
from .random_unlocks import try_random_unlocks, unlock_coin
from .selector import RARITY_WEIGHTS, pick_weighted, resolve_face, selectable_coins
from .tracker import track_coin_landing

__all__ = [
    "CoinCatalog",
    "CoinDefinition",
    "ProgressState",
    "FlipResolution",
    "RARITY_WEIGHTS",
    "apply_combo_streak_bonus",
    "auto_click_interval",
    "get_progress_description",
    "get_progress_percent",
    "heads_probability",
    "is_condition_met",
    "is_unlocked",
    "luck_chance_multiplier",
    "pick_weighted",
    "prerequisites_met",
    "resolve_face",
    "resolve_flip",
    "selectable_coins",
    "track_coin_landing",
    "try_random_unlocks",
    "unlock_coin",
    "update_characteristic_counts",
]
