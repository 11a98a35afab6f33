"""
Condition evaluator.

Decides whether a coin is unlocked for a given progress snapshot. Evaluation
never raises: conditions that point at unknown coins, or that are missing the
data they need, are simply never satisfied.
"""

from typing import Container, Optional

from .models import CoinDefinition, StreakSide, UnlockConditionType, condition_type
from .progress import ProgressState


def _is_dangling(path: Optional[str], catalog: Optional[Container[str]]) -> bool:
    if not path:
        return True
    return catalog is not None and path not in catalog


def streak_value(condition, progress: ProgressState) -> int:
    """The longest-streak counter a Streak condition is measured against."""
    if condition.streak_side == StreakSide.HEADS:
        return progress.longest_heads_streak
    if condition.streak_side == StreakSide.TAILS:
        return progress.longest_tails_streak
    return progress.longest_streak


def is_condition_met(
    condition,
    coin_path: str,
    progress: ProgressState,
    catalog: Optional[Container[str]] = None,
) -> bool:
    """
    Evaluate a single condition, ignoring its prerequisites.

    Args:
        condition: Any unlock condition variant (or None)
        coin_path: Path of the coin that owns the condition
        progress: Progress snapshot to evaluate against
        catalog: Known coin paths; references outside it are never satisfied

    Returns:
        True if the condition holds
    """
    kind = condition_type(condition)

    if kind == UnlockConditionType.NONE:
        return True
    if kind == UnlockConditionType.TOTAL_FLIPS:
        return progress.total_flips >= condition.required_count
    if kind == UnlockConditionType.HEADS_FLIPS:
        return progress.heads_flips >= condition.required_count
    if kind == UnlockConditionType.TAILS_FLIPS:
        return progress.tails_flips >= condition.required_count
    if kind == UnlockConditionType.STREAK:
        return streak_value(condition, progress) >= condition.required_count

    if kind == UnlockConditionType.LAND_ON_COIN:
        if _is_dangling(condition.required_coin_path, catalog):
            return False
        return progress.get_land_count(condition.required_coin_path) >= condition.required_count

    if kind == UnlockConditionType.LAND_ON_MULTIPLE_COINS:
        paths = condition.required_coin_paths
        if not paths or any(_is_dangling(path, catalog) for path in paths):
            return False
        return all(progress.get_land_count(path) >= condition.required_count for path in paths)

    if kind == UnlockConditionType.RANDOM_CHANCE:
        return coin_path in progress.random_unlocked_coins

    if kind == UnlockConditionType.LAND_ON_COINS_WITH_CHARACTERISTICS:
        if condition.consecutive_count <= 0:
            return False
        return progress.get_consecutive_count(coin_path) >= condition.consecutive_count

    return False


def prerequisites_met(
    condition,
    coin_path: str,
    progress: ProgressState,
    catalog: Optional[Container[str]] = None,
) -> bool:
    """All prerequisites hold. Prerequisites of prerequisites are not consulted."""
    if condition is None:
        return True
    return all(
        is_condition_met(prerequisite, coin_path, progress, catalog)
        for prerequisite in condition.prerequisites
    )


def first_unmet_prerequisite(condition, coin_path: str, progress: ProgressState, catalog=None):
    if condition is None:
        return None
    for prerequisite in condition.prerequisites:
        if not is_condition_met(prerequisite, coin_path, progress, catalog):
            return prerequisite
    return None


def is_unlocked(
    coin: CoinDefinition,
    progress: ProgressState,
    catalog: Optional[Container[str]] = None,
) -> bool:
    """
    Whether ``coin`` is unlocked.

    A coin with no condition is always unlocked. A coin that has ever been
    recorded as unlocked (it has an unlock timestamp) stays unlocked.
    """
    condition = coin.unlock_condition
    if condition is None:
        return True
    if coin.path in progress.coin_unlock_timestamps:
        return True
    if not prerequisites_met(condition, coin.path, progress, catalog):
        return False
    return is_condition_met(condition, coin.path, progress, catalog)


# ==================== Progress Reporting ====================

def _ratio(current: int, required: int) -> float:
    if required <= 0:
        return 0.0
    return min(100.0, current / required * 100)


def describe_condition_progress(condition, coin_path: str, progress: ProgressState) -> str:
    """Human readable "X/Y" style progress for one condition."""
    kind = condition_type(condition)

    if kind == UnlockConditionType.TOTAL_FLIPS:
        return f"{progress.total_flips}/{condition.required_count} flips"
    if kind == UnlockConditionType.HEADS_FLIPS:
        return f"{progress.heads_flips}/{condition.required_count} heads"
    if kind == UnlockConditionType.TAILS_FLIPS:
        return f"{progress.tails_flips}/{condition.required_count} tails"
    if kind == UnlockConditionType.STREAK:
        current = streak_value(condition, progress)
        if condition.streak_side == StreakSide.HEADS:
            return f"{current}/{condition.required_count} heads streak"
        if condition.streak_side == StreakSide.TAILS:
            return f"{current}/{condition.required_count} tails streak"
        return f"{current}/{condition.required_count} streak"
    if kind == UnlockConditionType.LAND_ON_COIN:
        if not condition.required_coin_path:
            return "Invalid condition"
        current = progress.get_land_count(condition.required_coin_path)
        return f"{current}/{condition.required_count} times"
    if kind == UnlockConditionType.LAND_ON_MULTIPLE_COINS:
        paths = condition.required_coin_paths
        if not paths:
            return "Invalid condition"
        completed = sum(
            1 for path in paths if progress.get_land_count(path) >= condition.required_count
        )
        return f"{completed}/{len(paths)} coins completed ({condition.required_count} each)"
    if kind == UnlockConditionType.RANDOM_CHANCE:
        return f"Random unlock ({condition.unlock_chance * 100:.3f}% chance)"
    if kind == UnlockConditionType.LAND_ON_COINS_WITH_CHARACTERISTICS:
        current = progress.get_consecutive_count(coin_path)
        return f"{current}/{condition.consecutive_count} in a row"
    return "Locked"


def get_progress_description(coin: CoinDefinition, progress: ProgressState, catalog=None) -> str:
    if is_unlocked(coin, progress, catalog):
        return "Unlocked"

    condition = coin.unlock_condition
    blocker = first_unmet_prerequisite(condition, coin.path, progress, catalog)
    if blocker is not None:
        return f"Requires: {describe_condition_progress(blocker, coin.path, progress)}"
    return describe_condition_progress(condition, coin.path, progress)


def _condition_percent(condition, coin_path: str, progress: ProgressState) -> float:
    kind = condition_type(condition)

    if kind == UnlockConditionType.NONE:
        return 100.0
    if kind == UnlockConditionType.TOTAL_FLIPS:
        return _ratio(progress.total_flips, condition.required_count)
    if kind == UnlockConditionType.HEADS_FLIPS:
        return _ratio(progress.heads_flips, condition.required_count)
    if kind == UnlockConditionType.TAILS_FLIPS:
        return _ratio(progress.tails_flips, condition.required_count)
    if kind == UnlockConditionType.STREAK:
        return _ratio(streak_value(condition, progress), condition.required_count)
    if kind == UnlockConditionType.LAND_ON_COIN:
        if not condition.required_coin_path:
            return 0.0
        return _ratio(progress.get_land_count(condition.required_coin_path), condition.required_count)
    if kind == UnlockConditionType.LAND_ON_MULTIPLE_COINS:
        paths = condition.required_coin_paths
        completed = sum(
            1 for path in paths if progress.get_land_count(path) >= condition.required_count
        )
        return _ratio(completed, len(paths))
    if kind == UnlockConditionType.RANDOM_CHANCE:
        return 100.0 if coin_path in progress.random_unlocked_coins else 0.0
    if kind == UnlockConditionType.LAND_ON_COINS_WITH_CHARACTERISTICS:
        return _ratio(progress.get_consecutive_count(coin_path), condition.consecutive_count)
    return 0.0


def get_progress_percent(coin: CoinDefinition, progress: ProgressState, catalog=None) -> float:
    """
    Progress towards unlocking ``coin`` in the range 0-100.

    Pure random-chance coins have nothing to measure, so they report the
    progress of their first prerequisite (or 0 without one).
    """
    if is_unlocked(coin, progress, catalog):
        return 100.0

    condition = coin.unlock_condition
    if condition_type(condition) == UnlockConditionType.RANDOM_CHANCE:
        if not condition.prerequisites:
            return 0.0
        return _condition_percent(condition.prerequisites[0], coin.path, progress)
    return _condition_percent(condition, coin.path, progress)
