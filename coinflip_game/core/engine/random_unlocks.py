"""
Random unlock roller for RandomChance coins.
"""

import math
from datetime import datetime
from typing import List, Optional

from coinflip_game.core.logger import get_logger
from coinflip_game.core.rng import RandomSource, rng as default_rng
from .catalog import CoinCatalog
from .conditions import is_unlocked, prerequisites_met
from .models import CoinDefinition, UnlockConditionType
from .progress import ProgressState, utc_now

logger = get_logger("random_unlocks")


def effective_chance(chance: float, chance_multiplier: float = 1.0) -> float:
    """Scaled unlock chance clamped to [0, 1]. NaN inputs count as 0."""
    value = chance * chance_multiplier
    if math.isnan(value):
        return 0.0
    return min(1.0, max(0.0, value))


def roll_count(condition, landed_path: str, heads_path: Optional[str], tails_path: Optional[str]) -> int:
    """
    Number of independent rolls a coin gets on this flip.

    Coins that require an active coin only roll while that coin is on a face,
    and roll twice when it sits on both faces.
    """
    if not condition.requires_active_coin:
        return 1

    target = condition.active_coin_path
    if not target:
        return 0

    if heads_path is None and tails_path is None:
        # Without face information the landed coin is the only active one
        return 1 if landed_path == target else 0

    return int(heads_path == target) + int(tails_path == target)


def try_random_unlocks(
    progress: ProgressState,
    catalog: CoinCatalog,
    landed_path: str,
    chance_multiplier: float = 1.0,
    heads_path: Optional[str] = None,
    tails_path: Optional[str] = None,
    rng: RandomSource = None,
    now: datetime = None,
) -> List[CoinDefinition]:
    """
    Roll every eligible, still-locked RandomChance coin once per flip.

    Args:
        progress: Progress snapshot, updated in place on success
        catalog: Coin catalog
        landed_path: Coin shown by the flip
        chance_multiplier: Scales every coin's chance (super flips, luck effects)
        heads_path: Coin on the heads face
        tails_path: Coin on the tails face
        rng: Random source returning floats in [0, 1)
        now: Unlock timestamp (defaults to the current UTC time)

    Returns:
        Newly unlocked coins in catalog order
    """
    draw = rng or default_rng
    newly_unlocked = []

    for coin in catalog.of_type(UnlockConditionType.RANDOM_CHANCE):
        if is_unlocked(coin, progress, catalog):
            continue

        condition = coin.unlock_condition
        if not prerequisites_met(condition, coin.path, progress, catalog):
            continue

        rolls = roll_count(condition, landed_path, heads_path, tails_path)
        if rolls == 0:
            continue

        chance = effective_chance(condition.unlock_chance, chance_multiplier)
        if chance <= 0.0:
            continue

        # Both rolls are drawn even when the first one succeeds
        results = [draw() < chance for _ in range(rolls)]
        if not any(results):
            continue

        progress.random_unlocked_coins.add(coin.path)
        progress.notification_shown_for.add(coin.path)
        progress.stamp_unlock(coin.path, now or utc_now())
        newly_unlocked.append(coin)
        logger.info(
            f"Random unlock: {coin.path} ({chance:.4%} x{rolls})",
            extra={"coin_path": coin.path, "flip_number": progress.total_flips, "chance": chance},
        )

    return newly_unlocked


def unlock_coin(progress: ProgressState, path: str, now: datetime = None) -> bool:
    """Manually unlock a coin (special events, testing). Returns False if it already was."""
    if path in progress.random_unlocked_coins:
        return False
    progress.random_unlocked_coins.add(path)
    progress.stamp_unlock(path, now or utc_now())
    return True
