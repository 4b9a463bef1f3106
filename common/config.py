"""Configuration settings read from the environment."""

import os

from common.constants import (
    DEFAULT_ASSEMBLY_TTL_SECONDS,
    DEFAULT_BLE_CHUNK_SIZE,
    DEFAULT_BLE_PACING_MS,
    DEFAULT_DB_PATH,
    DEFAULT_MAX_FRAGMENT_COUNT,
    DEFAULT_STORAGE_CHUNK_SIZE,
    DEFAULT_SWEEP_INTERVAL_SECONDS,
)


BLE_CHUNK_SIZE = int(os.environ.get("WALLET_BLE_CHUNK_SIZE", str(DEFAULT_BLE_CHUNK_SIZE)))

BLE_PACING_SECONDS = int(os.environ.get("WALLET_BLE_PACING_MS", str(DEFAULT_BLE_PACING_MS))) / 1000.0

ASSEMBLY_TTL_SECONDS = float(os.environ.get("WALLET_ASSEMBLY_TTL", str(DEFAULT_ASSEMBLY_TTL_SECONDS)))

SWEEP_INTERVAL_SECONDS = float(os.environ.get("WALLET_SWEEP_INTERVAL", str(DEFAULT_SWEEP_INTERVAL_SECONDS)))

MAX_FRAGMENT_COUNT = int(os.environ.get("WALLET_MAX_FRAGMENT_COUNT", str(DEFAULT_MAX_FRAGMENT_COUNT)))

STORAGE_CHUNK_SIZE = int(os.environ.get("WALLET_STORAGE_CHUNK_SIZE", str(DEFAULT_STORAGE_CHUNK_SIZE)))

DATABASE_PATH = os.path.expanduser(os.environ.get("WALLET_DB_PATH", DEFAULT_DB_PATH))
