"""
Per-flip progress tracking.

``track_coin_landing`` is the single entry point the game calls once a flip
has landed: it snapshots which coins were unlocked, updates every counter,
runs the consecutive-landing tracker and reports coins that became unlocked.
"""

from datetime import datetime
from typing import Callable, Dict, List, Optional

from coinflip_game.core.logger import get_logger
from .catalog import CoinCatalog
from .characteristics import update_characteristic_counts
from .conditions import is_unlocked
from .models import CoinDefinition, UnlockConditionType, condition_type
from .progress import ProgressState, utc_now

logger = get_logger("tracker")


def snapshot_unlocked(progress: ProgressState, catalog: CoinCatalog) -> Dict[str, bool]:
    return {coin.path: is_unlocked(coin, progress, catalog) for coin in catalog}


def record_landing(
    progress: ProgressState,
    catalog: CoinCatalog,
    landed_path: str,
    is_heads: bool,
    current_streak: int,
    heads_path: Optional[str] = None,
    tails_path: Optional[str] = None,
):
    """Update every counter for one landed flip."""
    progress.total_flips += 1
    if is_heads:
        progress.heads_flips += 1
    else:
        progress.tails_flips += 1

    progress.record_streak(current_streak, is_heads)

    if landed_path:
        progress.coin_land_counts[landed_path] = progress.get_land_count(landed_path) + 1

    update_characteristic_counts(progress, catalog, landed_path, is_heads, heads_path, tails_path)


def collect_newly_unlocked(
    before: Dict[str, bool],
    progress: ProgressState,
    catalog: CoinCatalog,
    now: datetime = None,
) -> List[CoinDefinition]:
    """
    Coins that went from locked to unlocked, in catalog order.

    Every unlocked coin with a condition gets an unlock timestamp the first
    time it is seen, which latches it as unlocked from then on.
    """
    when = now or utc_now()
    newly_unlocked = []

    for coin in catalog:
        if coin.unlock_condition is None:
            continue
        if not is_unlocked(coin, progress, catalog):
            continue

        progress.stamp_unlock(coin.path, when)

        if before.get(coin.path, False) or coin.path in progress.notification_shown_for:
            continue
        # Chance-based coins are reported by the roller
        if condition_type(coin.unlock_condition) == UnlockConditionType.RANDOM_CHANCE:
            continue

        progress.notification_shown_for.add(coin.path)
        newly_unlocked.append(coin)
        logger.info(
            f"Unlocked {coin.path} after {progress.total_flips} flips",
            extra={"coin_path": coin.path, "flip_number": progress.total_flips},
        )

    return newly_unlocked


def track_coin_landing(
    progress: ProgressState,
    catalog: CoinCatalog,
    landed_path: str,
    is_heads: bool,
    current_streak: int,
    heads_path: Optional[str] = None,
    tails_path: Optional[str] = None,
    persist: Callable[[ProgressState], object] = None,
    now: datetime = None,
) -> List[CoinDefinition]:
    """
    Record one landed flip and return the coins it unlocked.

    Args:
        progress: Progress snapshot, updated in place
        catalog: Coin catalog
        landed_path: Coin shown by the flip
        is_heads: Whether the flip landed heads
        current_streak: Streak length including this flip
        heads_path: Coin on the heads face
        tails_path: Coin on the tails face
        persist: Optional callback that saves the updated snapshot
        now: Unlock timestamp (defaults to the current UTC time)

    Returns:
        Newly unlocked coins in catalog order
    """
    before = snapshot_unlocked(progress, catalog)
    record_landing(progress, catalog, landed_path, is_heads, current_streak, heads_path, tails_path)
    newly_unlocked = collect_newly_unlocked(before, progress, catalog, now)

    if persist is not None:
        persist(progress)

    return newly_unlocked
