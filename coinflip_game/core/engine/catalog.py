"""
In-memory coin catalog.

Built once at startup and never mutated afterwards. Duplicate paths are
dropped (first declaration wins) and dynamic coin lists are expanded here,
so the rest of the engine only ever sees concrete path lists.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from coinflip_game.core.logger import get_logger
from .models import CoinDefinition, UnlockConditionType, condition_type

logger = get_logger("catalog")


def _is_unlockable(coin: CoinDefinition) -> bool:
    return condition_type(coin.unlock_condition) != UnlockConditionType.NONE


class CoinCatalog:
    """Ordered, path-indexed collection of coin definitions."""

    def __init__(self, coins: Iterable[CoinDefinition] = ()):
        unique: List[CoinDefinition] = []
        seen = set()
        for coin in coins:
            if coin.path in seen:
                logger.warning(f"Duplicate coin path in catalog, keeping the first: {coin.path}")
                continue
            seen.add(coin.path)
            unique.append(coin)

        self._coins: Tuple[CoinDefinition, ...] = tuple(self._expand_dynamic_lists(unique))
        self._by_path: Dict[str, CoinDefinition] = {coin.path: coin for coin in self._coins}

    @staticmethod
    def _expand_dynamic_lists(coins: List[CoinDefinition]) -> List[CoinDefinition]:
        """Replace dynamic LandOnMultipleCoins lists with every other unlockable coin."""
        unlockable = [coin.path for coin in coins if _is_unlockable(coin)]
        expanded = []
        for coin in coins:
            condition = coin.unlock_condition
            if (
                condition_type(condition) == UnlockConditionType.LAND_ON_MULTIPLE_COINS
                and condition.use_dynamic_coin_list
            ):
                paths = tuple(path for path in unlockable if path != coin.path)
                condition = condition.model_copy(update={"required_coin_paths": paths})
                coin = coin.model_copy(update={"unlock_condition": condition})
                logger.debug(f"Expanded dynamic coin list for {coin.path}: {len(paths)} coins")
            expanded.append(coin)
        return expanded

    def __iter__(self) -> Iterator[CoinDefinition]:
        return iter(self._coins)

    def __len__(self) -> int:
        return len(self._coins)

    def __contains__(self, path) -> bool:
        return path in self._by_path

    @property
    def coins(self) -> Tuple[CoinDefinition, ...]:
        return self._coins

    @property
    def paths(self) -> List[str]:
        return [coin.path for coin in self._coins]

    def get(self, path: Optional[str]) -> Optional[CoinDefinition]:
        if path is None:
            return None
        return self._by_path.get(path)

    def of_type(self, kind: UnlockConditionType) -> List[CoinDefinition]:
        return [coin for coin in self._coins if condition_type(coin.unlock_condition) == kind]
