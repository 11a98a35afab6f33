"""
Rarity-weighted coin selection for faces set to "random".
"""

from typing import Dict, List, Optional, Sequence

from coinflip_game.core.rng import RandomSource, rng as default_rng
from .catalog import CoinCatalog
from .conditions import is_unlocked
from .models import CoinDefinition, Rarity
from .progress import ProgressState

# Rarer coins show up less often
RARITY_WEIGHTS: Dict[Rarity, float] = {
    Rarity.COMMON: 1.0,
    Rarity.UNCOMMON: 0.5,
    Rarity.RARE: 0.25,
    Rarity.LEGENDARY: 0.1,
}


def coin_weight(coin: CoinDefinition, weights: Dict = None) -> float:
    table = weights or RARITY_WEIGHTS
    rarity = coin.effective_rarity
    # Tables loaded from config are keyed by the rarity name
    weight = table.get(rarity, table.get(rarity.value, 0.0))
    return weight if weight > 0 else 0.0


def pick_weighted(
    candidates: Sequence[CoinDefinition],
    rng: RandomSource = None,
    weights: Dict = None,
) -> Optional[CoinDefinition]:
    """
    Pick one coin with probability proportional to its rarity weight.

    Returns None when there is nothing to pick from (no candidates or a
    zero total weight); callers fall back to the explicitly selected coin.
    """
    if not candidates:
        return None

    coin_weights = [coin_weight(coin, weights) for coin in candidates]
    total_weight = sum(coin_weights)
    if total_weight <= 0:
        return None

    target = (rng or default_rng)() * total_weight

    cumulative = 0.0
    last_weighted = None
    for coin, weight in zip(candidates, coin_weights):
        if weight <= 0:
            continue
        cumulative += weight
        last_weighted = coin
        if cumulative >= target:
            return coin

    # Float rounding can leave the target a hair above the final sum
    return last_weighted


def selectable_coins(catalog: CoinCatalog, progress: ProgressState) -> List[CoinDefinition]:
    """Unlocked coins that carry a condition or an effect."""
    return [
        coin
        for coin in catalog
        if coin.is_configured and is_unlocked(coin, progress, catalog)
    ]


def resolve_face(
    selected_path: str,
    is_random: bool,
    catalog: CoinCatalog,
    progress: ProgressState,
    rng: RandomSource = None,
    weights: Dict = None,
) -> str:
    """Path shown on a face: a weighted random pick, or the selected coin."""
    if not is_random:
        return selected_path
    picked = pick_weighted(selectable_coins(catalog, progress), rng=rng, weights=weights)
    return picked.path if picked is not None else selected_path
