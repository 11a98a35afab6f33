"""
Game session: one player's progress plus the per-flip pipeline.

Only one flip can be in flight at a time. While a flip is being resolved
and saved the session is busy, and any other flip, landing, reload or reset
is rejected with FlipInProgressError instead of interleaving with it. The
first load of saved progress is shared by every caller that needs it.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from coinflip_game.core.exceptions import FlipInProgressError
from coinflip_game.core.logger import get_logger
from coinflip_game.core.rng import RandomSource, rng as default_rng
from coinflip_game.core.storage import ProgressStore, load_progress, save_progress
from coinflip_game.core.engine import conditions, random_unlocks, selector, tracker
from coinflip_game.core.engine.catalog import CoinCatalog
from coinflip_game.core.engine.effects import (
    FlipResolution,
    apply_combo_streak_bonus,
    auto_click_interval,
    luck_chance_multiplier,
    resolve_flip,
)
from coinflip_game.core.engine.models import CoinDefinition
from coinflip_game.core.engine.progress import ProgressState

logger = get_logger("session")

DEFAULT_PROGRESS_KEY = "coinUnlockProgress"


def coin_summary(coin: CoinDefinition) -> Dict:
    return {
        "path": coin.path,
        "name": coin.display_name,
        "rarity": coin.effective_rarity.value,
    }


@dataclass
class FlipOutcome:
    result: str
    landed_path: str
    heads_path: str
    tails_path: str
    heads_probability: float
    streak: int
    newly_unlocked: List[CoinDefinition] = field(default_factory=list)
    random_unlocked: List[CoinDefinition] = field(default_factory=list)
    saved: bool = True

    def to_dict(self) -> Dict:
        return {
            "result": self.result,
            "landed_path": self.landed_path,
            "heads_path": self.heads_path,
            "tails_path": self.tails_path,
            "heads_probability": round(self.heads_probability, 4),
            "streak": self.streak,
            "newly_unlocked": [coin_summary(coin) for coin in self.newly_unlocked],
            "random_unlocked": [coin_summary(coin) for coin in self.random_unlocked],
            "saved": self.saved,
        }


class GameSession:
    """Progress, streak state and persistence for one player profile."""

    def __init__(
        self,
        catalog: CoinCatalog,
        store: Optional[ProgressStore] = None,
        progress_key: str = DEFAULT_PROGRESS_KEY,
        rng: RandomSource = None,
        rarity_weights: Dict = None,
        default_chance_multiplier: float = 1.0,
    ):
        self.catalog = catalog
        self.store = store
        self.progress_key = progress_key
        self.rng = rng or default_rng
        self.rarity_weights = rarity_weights
        self.default_chance_multiplier = default_chance_multiplier

        self.progress = ProgressState()
        self.current_streak = 0
        self.last_result = ""
        self._loaded = False
        self._load_lock: Optional[asyncio.Lock] = None
        self._busy = False

    # ==================== Lifecycle ====================

    def _get_load_lock(self) -> asyncio.Lock:
        # Created lazily so it binds to the running event loop
        if self._load_lock is None:
            self._load_lock = asyncio.Lock()
        return self._load_lock

    async def _read(self):
        self.progress = await asyncio.to_thread(load_progress, self.store, self.progress_key)
        self._loaded = True
        logger.info(
            f"Progress loaded: {self.progress.total_flips} flips, "
            f"{len(self.progress.coin_unlock_timestamps)} unlocks"
        )

    async def load(self):
        """(Re)load saved progress. Storage failures start a fresh in-memory state."""
        self._begin()
        try:
            async with self._get_load_lock():
                await self._read()
        finally:
            self._end()

    async def ensure_loaded(self):
        """Load saved progress once. Concurrent callers share the same load."""
        if self._loaded:
            return
        async with self._get_load_lock():
            if not self._loaded:
                await self._read()

    async def _persist(self) -> bool:
        snapshot = self.progress.copy_state()
        return await asyncio.to_thread(save_progress, self.store, self.progress_key, snapshot)

    @property
    def is_busy(self) -> bool:
        return self._busy

    def _begin(self):
        if self._busy:
            raise FlipInProgressError()
        self._busy = True

    def _end(self):
        self._busy = False

    # ==================== Queries ====================

    def coin(self, path: str) -> Optional[CoinDefinition]:
        return self.catalog.get(path)

    def is_unlocked(self, path: str) -> bool:
        coin = self.catalog.get(path)
        if coin is None:
            return False
        return conditions.is_unlocked(coin, self.progress, self.catalog)

    def get_progress_description(self, path: str) -> str:
        coin = self.catalog.get(path)
        if coin is None:
            return "Unknown coin"
        return conditions.get_progress_description(coin, self.progress, self.catalog)

    def get_progress_percent(self, path: str) -> float:
        coin = self.catalog.get(path)
        if coin is None:
            return 0.0
        return conditions.get_progress_percent(coin, self.progress, self.catalog)

    def get_total_flips(self) -> int:
        return self.progress.total_flips

    def get_heads_flips(self) -> int:
        return self.progress.heads_flips

    def get_tails_flips(self) -> int:
        return self.progress.tails_flips

    def get_longest_streak(self) -> int:
        return self.progress.longest_streak

    def get_longest_heads_streak(self) -> int:
        return self.progress.longest_heads_streak

    def get_longest_tails_streak(self) -> int:
        return self.progress.longest_tails_streak

    def get_coin_land_count(self, path: str) -> int:
        return self.progress.get_land_count(path)

    def unlocked_coins(self) -> List[CoinDefinition]:
        return [coin for coin in self.catalog if conditions.is_unlocked(coin, self.progress, self.catalog)]

    def effect_of(self, path: Optional[str]):
        coin = self.catalog.get(path)
        return coin.effect if coin is not None else None

    def auto_click_interval(self, heads_path: str, tails_path: str) -> Optional[int]:
        return auto_click_interval(self.effect_of(heads_path), self.effect_of(tails_path))

    def resolve_flip(self, heads_path: str, tails_path: str, rng_draw: float = None) -> FlipResolution:
        """Decide heads or tails for the two faces without recording anything."""
        draw = self.rng() if rng_draw is None else rng_draw
        return resolve_flip(draw, self.effect_of(heads_path), self.effect_of(tails_path), self.last_result)

    def pick_weighted(self, candidates: List[CoinDefinition] = None) -> Optional[CoinDefinition]:
        if candidates is None:
            candidates = selector.selectable_coins(self.catalog, self.progress)
        return selector.pick_weighted(candidates, rng=self.rng, weights=self.rarity_weights)

    # ==================== Mutations ====================

    async def track_coin_landing(
        self,
        landed_path: str,
        is_heads: bool,
        current_streak: int,
        heads_path: str = None,
        tails_path: str = None,
    ) -> List[CoinDefinition]:
        """Record a flip decided elsewhere and return the coins it unlocked."""
        self._begin()
        try:
            await self.ensure_loaded()
            newly_unlocked = tracker.track_coin_landing(
                self.progress, self.catalog, landed_path, is_heads, current_streak, heads_path, tails_path
            )
            await self._persist()
            return newly_unlocked
        finally:
            self._end()

    async def try_random_unlocks(
        self,
        landed_path: str,
        chance_multiplier: float = 1.0,
        heads_path: str = None,
        tails_path: str = None,
    ) -> List[CoinDefinition]:
        self._begin()
        try:
            await self.ensure_loaded()
            unlocked = random_unlocks.try_random_unlocks(
                self.progress, self.catalog, landed_path, chance_multiplier, heads_path, tails_path, rng=self.rng
            )
            if unlocked:
                await self._persist()
            return unlocked
        finally:
            self._end()

    async def unlock_coin(self, path: str) -> bool:
        """Manually unlock a coin (special events, testing)."""
        self._begin()
        try:
            await self.ensure_loaded()
            changed = random_unlocks.unlock_coin(self.progress, path)
            if changed:
                await self._persist()
            return changed
        finally:
            self._end()

    async def reset_progress(self) -> bool:
        """Clear all counters and unlocks and persist the zeroed state."""
        self._begin()
        try:
            # A pending first load must not land on top of the reset
            await self.ensure_loaded()
            self.progress = ProgressState()
            self.current_streak = 0
            self.last_result = ""
            logger.info("Progress reset")
            return await self._persist()
        finally:
            self._end()

    async def flip(
        self,
        heads_path: str,
        tails_path: str,
        heads_random: bool = False,
        tails_random: bool = False,
        chance_multiplier: float = None,
    ) -> FlipOutcome:
        """
        Resolve, record and save one complete flip.

        Args:
            heads_path: Coin selected for the heads face
            tails_path: Coin selected for the tails face
            heads_random: Show a weighted random unlocked coin on heads instead
            tails_random: Show a weighted random unlocked coin on tails instead
            chance_multiplier: Base random-unlock multiplier (super flips)

        Returns:
            FlipOutcome with the result and every coin it unlocked
        """
        self._begin()
        try:
            await self.ensure_loaded()

            heads_face = selector.resolve_face(
                heads_path, heads_random, self.catalog, self.progress, self.rng, self.rarity_weights
            )
            tails_face = selector.resolve_face(
                tails_path, tails_random, self.catalog, self.progress, self.rng, self.rarity_weights
            )
            heads_effect = self.effect_of(heads_face)
            tails_effect = self.effect_of(tails_face)

            resolution = resolve_flip(self.rng(), heads_effect, tails_effect, self.last_result)
            result = resolution.result

            streak = self.current_streak + 1 if result == self.last_result else 1
            streak = apply_combo_streak_bonus(streak, heads_effect, tails_effect)
            self.current_streak = streak
            self.last_result = result

            landed_path = heads_face if resolution.landed_heads else tails_face
            newly_unlocked = tracker.track_coin_landing(
                self.progress,
                self.catalog,
                landed_path,
                resolution.landed_heads,
                streak,
                heads_face,
                tails_face,
            )

            base = self.default_chance_multiplier if chance_multiplier is None else chance_multiplier
            multiplier = luck_chance_multiplier(heads_effect, tails_effect, base=base)
            random_unlocked = random_unlocks.try_random_unlocks(
                self.progress,
                self.catalog,
                landed_path,
                multiplier,
                heads_face,
                tails_face,
                rng=self.rng,
            )

            saved = await self._persist()
            logger.debug(
                f"Flip #{self.progress.total_flips}: {result} on {landed_path} "
                f"(p_heads={resolution.heads_probability:.2f}, streak={streak})"
            )

            return FlipOutcome(
                result=result,
                landed_path=landed_path,
                heads_path=heads_face,
                tails_path=tails_face,
                heads_probability=resolution.heads_probability,
                streak=streak,
                newly_unlocked=newly_unlocked,
                random_unlocked=random_unlocked,
                saved=saved,
            )
        finally:
            self._end()
