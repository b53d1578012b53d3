from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from ..settings import settings


def wallet_address_optional(
    wallet: Optional[str] = Header(default=None, alias=settings.WALLET_HEADER),
) -> Optional[str]:
    if not wallet or not wallet.strip():
        return None
    return wallet.strip()


def require_wallet_address(
    wallet: Optional[str] = Depends(wallet_address_optional),
) -> str:
    if not wallet:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="wallet_not_connected")
    return wallet
