from __future__ import annotations

import os


class Settings:
    # Repo root holding urban_config.yaml
    CONFIG_ROOT: str = os.getenv("URBAN_CONFIG_ROOT", os.getcwd())

    # Request header carrying the connected wallet address
    WALLET_HEADER: str = os.getenv("URBAN_WALLET_HEADER", "X-Wallet-Address")

    # Local data (file directory snapshots)
    DATA_DIR: str = os.getenv("URBAN_DATA_DIR", "data")


settings = Settings()
