"""Read-only whale queries over the tracked set."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Literal

from fastapi import APIRouter, Depends, HTTPException, Query

from whale_scout.api.deps import get_runtime
from whale_scout.api.throttle import throttle
from whale_scout.exceptions import InvalidAddressError
from whale_scout.models import WalletCategory, WhaleWallet
from whale_scout.scoring.heuristics import is_valid_solana_address
from whale_scout.services.runtime import Runtime

router = APIRouter(tags=["whales"])

SortKey = Literal["balance", "win_rate", "activity"]

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def _sort_key(sort_by: SortKey):
    if sort_by == "win_rate":
        return lambda w: w.stats.win_rate
    if sort_by == "activity":
        return lambda w: w.stats.last_active_date or _EPOCH
    return lambda w: w.balance.total_balance_usd


def filter_wallets(
    wallets: list[WhaleWallet],
    *,
    category: WalletCategory | None = None,
    min_balance: float | None = None,
    min_win_rate: float | None = None,
    sort_by: SortKey = "balance",
    limit: int | None = None,
) -> list[WhaleWallet]:
    selected = [
        w
        for w in wallets
        if (category is None or w.category == category)
        and (min_balance is None or w.balance.total_balance_usd >= min_balance)
        and (min_win_rate is None or w.stats.win_rate >= min_win_rate)
    ]
    selected.sort(key=_sort_key(sort_by), reverse=True)
    return selected[:limit] if limit else selected


@router.get("/whales", dependencies=[Depends(throttle("whales"))])
async def list_whales(
    category: WalletCategory | None = None,
    min_balance: float | None = Query(default=None, ge=0),
    min_win_rate: float | None = Query(default=None, ge=0, le=100),
    sort_by: SortKey = "balance",
    limit: int | None = Query(default=None, gt=0),
    runtime: Runtime = Depends(get_runtime),
) -> dict[str, Any]:
    tracked = runtime.tracking.tracked
    wallets = filter_wallets(
        tracked,
        category=category,
        min_balance=min_balance,
        min_win_rate=min_win_rate,
        sort_by=sort_by,
        limit=limit,
    )
    return {
        "count": len(wallets),
        "total_count": len(tracked),
        "filters": {
            "category": category,
            "min_balance": min_balance,
            "min_win_rate": min_win_rate,
            "sort_by": sort_by,
            "limit": limit,
        },
        "wallets": [w.model_dump(mode="json") for w in wallets],
        "credits": runtime.ledger.snapshot().model_dump(mode="json"),
    }


@router.get("/whales/{address}", dependencies=[Depends(throttle("whales"))])
async def get_whale(address: str, runtime: Runtime = Depends(get_runtime)) -> dict[str, Any]:
    if not is_valid_solana_address(address):
        raise InvalidAddressError(f"Invalid Solana address: {address}")
    wallet = runtime.tracking.get(address)
    if wallet is None:
        raise HTTPException(status_code=404, detail="Whale wallet not found in current tracking set")
    return {"whale": wallet.model_dump(mode="json")}


@router.get("/top-performers")
async def top_performers(
    min_win_rate: float = Query(default=60.0, ge=0, le=100),
    min_balance: float = Query(default=50_000.0, ge=0),
    limit: int = Query(default=30, gt=0, le=200),
    runtime: Runtime = Depends(get_runtime),
) -> dict[str, Any]:
    performers = filter_wallets(
        runtime.tracking.tracked,
        min_balance=min_balance,
        min_win_rate=min_win_rate,
        sort_by="win_rate",
        limit=limit,
    )
    return {
        "count": len(performers),
        "performers": [
            {
                "address": w.address,
                "name": w.name,
                "win_rate": w.stats.win_rate,
                "balance": w.balance.total_balance_usd,
                "category": w.category,
                "risk_level": w.risk_level,
                "last_active": w.stats.last_active_date,
                "tags": w.tags,
            }
            for w in performers
        ],
    }


@router.get("/high-value-wallets", dependencies=[Depends(throttle("high_value"))])
async def high_value_wallets(
    limit: int = Query(default=100, gt=0, le=500),
    runtime: Runtime = Depends(get_runtime),
) -> dict[str, Any]:
    analyzer = runtime.settings.analyzer
    wallets = [
        w
        for w in filter_wallets(
            runtime.tracking.tracked,
            min_balance=analyzer.min_balance_usd,
            min_win_rate=analyzer.min_win_rate,
        )
        if w.enabled
    ][:limit]
    return {
        "count": len(wallets),
        "wallets": [
            {
                "address": w.address,
                "name": w.name,
                "description": w.description,
                "win_rate": w.win_rate,
                "enabled": w.enabled,
                "category": w.category,
                "balance_usd": w.balance.total_balance_usd,
                "risk_level": w.risk_level,
                "last_active": w.stats.last_active_date,
                "tags": w.tags,
                "source": w.source,
            }
            for w in wallets
        ],
        "criteria": {"min_balance": analyzer.min_balance_usd, "min_win_rate": analyzer.min_win_rate},
    }


@router.get("/stats")
async def stats(runtime: Runtime = Depends(get_runtime)) -> dict[str, Any]:
    wallets = runtime.tracking.tracked
    count = len(wallets)
    total_value = sum(w.balance.total_balance_usd for w in wallets)
    day_ago = datetime.now(timezone.utc) - timedelta(days=1)
    return {
        "total_wallets": count,
        "categories": {
            category: sum(1 for w in wallets if w.category == category)
            for category in ("WHALE", "SUPER_WHALE", "MEGA_WHALE")
        },
        "risk_levels": {
            level: sum(1 for w in wallets if w.risk_level == level) for level in ("LOW", "MEDIUM", "HIGH")
        },
        "performance": {
            "avg_balance": total_value / count if count else 0.0,
            "avg_win_rate": sum(w.stats.win_rate for w in wallets) / count if count else 0.0,
            "total_value": total_value,
            "active_today": sum(
                1 for w in wallets if w.stats.last_active_date and w.stats.last_active_date > day_ago
            ),
        },
        "top_wallets": [
            {
                "address": f"{w.address[:8]}...",
                "name": w.name,
                "balance": w.balance.total_balance_usd,
                "win_rate": w.stats.win_rate,
                "category": w.category,
            }
            for w in wallets[:10]
        ],
    }
