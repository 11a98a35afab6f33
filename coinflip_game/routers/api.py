from fastapi import APIRouter, Request, HTTPException
from pydantic import BaseModel
from typing import Optional

from coinflip_game.core.exceptions import FlipInProgressError
from coinflip_game.core.session import GameSession
from coinflip_game.core.logger import get_logger

logger = get_logger("api")

router = APIRouter()

# ==================== Request Models ====================

class FlipRequest(BaseModel):
    heads_path: str
    tails_path: str
    heads_random: bool = False
    tails_random: bool = False
    chance_multiplier: Optional[float] = None

class UnlockRequest(BaseModel):
    path: str

# ==================== Helpers ====================

async def get_session(request: Request) -> GameSession:
    session = request.app.state.session
    await session.ensure_loaded()
    return session

def coin_status(session: GameSession, coin) -> dict:
    condition = coin.unlock_condition
    return {
        "path": coin.path,
        "name": coin.display_name,
        "category": coin.category,
        "rarity": coin.effective_rarity.value,
        "condition_type": condition.type if condition is not None else None,
        "effect_type": coin.effect.type if coin.effect is not None else None,
        "description": condition.description if condition is not None else "",
        "flavor_text": condition.flavor_text if condition is not None else "",
        "unlocked": session.is_unlocked(coin.path),
        "progress": session.get_progress_description(coin.path),
        "percent": round(session.get_progress_percent(coin.path), 2),
        "land_count": session.get_coin_land_count(coin.path),
    }

def require_coin(session: GameSession, path: str):
    coin = session.coin(path)
    if coin is None:
        raise HTTPException(status_code=404, detail=f"Unknown coin: {path}")
    return coin

# ==================== Coins ====================

@router.get("/coins")
async def list_coins(request: Request):
    session = await get_session(request)
    return {"coins": [coin_status(session, coin) for coin in session.catalog]}


@router.get("/coins/{path:path}")
async def get_coin(path: str, request: Request):
    session = await get_session(request)
    coin = require_coin(session, path)
    return coin_status(session, coin)

# ==================== Progress ====================

@router.get("/progress")
async def get_progress(request: Request):
    session = await get_session(request)
    return {
        "total_flips": session.get_total_flips(),
        "heads_flips": session.get_heads_flips(),
        "tails_flips": session.get_tails_flips(),
        "longest_streak": session.get_longest_streak(),
        "longest_heads_streak": session.get_longest_heads_streak(),
        "longest_tails_streak": session.get_longest_tails_streak(),
        "current_streak": session.current_streak,
        "last_result": session.last_result,
        "unlocked": [coin.path for coin in session.unlocked_coins()],
        "total_coins": len(session.catalog),
    }


@router.post("/progress/reset")
async def reset_progress(request: Request):
    session = await get_session(request)
    try:
        saved = await session.reset_progress()
    except FlipInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"success": True, "saved": saved}


@router.post("/progress/unlock")
async def unlock_coin(body: UnlockRequest, request: Request):
    session = await get_session(request)
    require_coin(session, body.path)
    try:
        changed = await session.unlock_coin(body.path)
    except FlipInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"success": True, "changed": changed}

# ==================== Flip ====================

@router.post("/flip")
async def flip(body: FlipRequest, request: Request):
    session = await get_session(request)
    if not body.heads_random:
        require_coin(session, body.heads_path)
    if not body.tails_random:
        require_coin(session, body.tails_path)

    try:
        outcome = await session.flip(
            body.heads_path,
            body.tails_path,
            heads_random=body.heads_random,
            tails_random=body.tails_random,
            chance_multiplier=body.chance_multiplier,
        )
    except FlipInProgressError as e:
        logger.warning(f"Flip rejected: {e}")
        raise HTTPException(status_code=409, detail=str(e))

    result = outcome.to_dict()
    result["auto_click_interval"] = session.auto_click_interval(outcome.heads_path, outcome.tails_path)
    return result
