"""
Consecutive-landing tracker for LandOnCoinsWithCharacteristics conditions.

After every flip each tracked coin's counter either grows by one (the flip
matched its filter) or drops back to zero.
"""

from typing import Optional

from coinflip_game.core.logger import get_logger
from .catalog import CoinCatalog
from .conditions import is_unlocked, prerequisites_met
from .models import (
    CharacteristicFilter,
    CharacteristicsCondition,
    CoinDefinition,
    CoinEffectType,
    SideRequirement,
    UnlockConditionType,
    condition_type,
    effect_type,
)
from .progress import ProgressState

logger = get_logger("characteristics")


def matches_filter(path: Optional[str], candidate: Optional[CoinDefinition], condition: CharacteristicsCondition) -> bool:
    """Whether the coin at ``path`` satisfies the condition's characteristic filter."""
    kind = condition.characteristic_filter

    if kind == CharacteristicFilter.SPECIFIC_COINS:
        return bool(path) and path in condition.required_coin_paths

    # Every other filter inspects the coin's metadata, so unknown coins never match
    if candidate is None:
        return False

    if kind == CharacteristicFilter.UNLOCK_CONDITION_TYPE:
        if condition.filter_unlock_condition_type is None:
            return False
        return condition_type(candidate.unlock_condition) == condition.filter_unlock_condition_type
    if kind == CharacteristicFilter.EFFECT_TYPE:
        if condition.filter_effect_type is None:
            return False
        return effect_type(candidate.effect) == condition.filter_effect_type
    if kind == CharacteristicFilter.HAS_ANY_EFFECT:
        return effect_type(candidate.effect) != CoinEffectType.NONE
    if kind == CharacteristicFilter.HAS_ANY_UNLOCK_CONDITION:
        return condition_type(candidate.unlock_condition) != UnlockConditionType.NONE

    prerequisite_count = (
        len(candidate.unlock_condition.prerequisites) if candidate.unlock_condition else 0
    )
    if kind == CharacteristicFilter.PREREQUISITE_COUNT_EQUALS:
        return prerequisite_count == condition.filter_prerequisite_count
    if kind == CharacteristicFilter.PREREQUISITE_COUNT_GREATER_THAN:
        return prerequisite_count > condition.filter_prerequisite_count
    if kind == CharacteristicFilter.PREREQUISITE_COUNT_LESS_THAN:
        return prerequisite_count < condition.filter_prerequisite_count
    return False


def flip_matches(
    condition: CharacteristicsCondition,
    catalog: CoinCatalog,
    landed_path: str,
    is_heads: bool,
    heads_path: Optional[str] = None,
    tails_path: Optional[str] = None,
) -> bool:
    """Apply the side requirement on top of the characteristic filter for one flip."""
    side = condition.side_requirement

    def check(path):
        return matches_filter(path, catalog.get(path), condition)

    if side == SideRequirement.EITHER:
        return check(landed_path)
    if side == SideRequirement.BOTH:
        return check(heads_path) and check(tails_path)
    if side == SideRequirement.HEADS_ONLY:
        return is_heads and check(landed_path)
    if side == SideRequirement.TAILS_ONLY:
        return not is_heads and check(landed_path)
    if side == SideRequirement.HEADS_AND_TAILS:
        paths = condition.required_coin_paths
        if len(paths) != 2 or not heads_path or not tails_path:
            return False
        return sorted((heads_path, tails_path)) == sorted(paths)
    if side == SideRequirement.ANY_FROM_LIST:
        paths = condition.required_coin_paths
        return (heads_path in paths) or (tails_path in paths)
    return False


def update_characteristic_counts(
    progress: ProgressState,
    catalog: CoinCatalog,
    landed_path: str,
    is_heads: bool,
    heads_path: Optional[str] = None,
    tails_path: Optional[str] = None,
):
    """
    Advance or reset the consecutive counter of every characteristic coin.

    Coins that are already unlocked keep their final count. Coins whose
    prerequisites are not met yet cannot start a run and stay at zero.
    """
    for coin in catalog.of_type(UnlockConditionType.LAND_ON_COINS_WITH_CHARACTERISTICS):
        if is_unlocked(coin, progress, catalog):
            continue

        condition = coin.unlock_condition
        counts = progress.characteristic_consecutive_counts

        if not prerequisites_met(condition, coin.path, progress, catalog):
            counts[coin.path] = 0
            continue

        if flip_matches(condition, catalog, landed_path, is_heads, heads_path, tails_path):
            counts[coin.path] = counts.get(coin.path, 0) + 1
        else:
            if counts.get(coin.path, 0):
                logger.debug(f"Consecutive run for {coin.path} broken at {counts[coin.path]}")
            counts[coin.path] = 0
