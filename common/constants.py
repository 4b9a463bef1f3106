"""Project-wide constants (wire envelope, key layout, default sizes)."""

ENVELOPE_DELIMITER: str = ":"
ENVELOPE_FIELD_COUNT: int = 5

ENCODING_BASE64: str = "b64"
ENCODING_RAW: str = "raw"
TRANSPORT_ENCODINGS = (ENCODING_BASE64, ENCODING_RAW)

DEFAULT_BLE_CHUNK_SIZE: int = 300
DEFAULT_BLE_PACING_MS: int = 100
DEFAULT_ASSEMBLY_TTL_SECONDS: int = 30
DEFAULT_SWEEP_INTERVAL_SECONDS: int = 10
DEFAULT_MAX_FRAGMENT_COUNT: int = 4096  # 1.2MB at the default fragment size

DEFAULT_STORAGE_CHUNK_SIZE: int = 1950  # under 2KB backend value cap

METADATA_KEY_PREFIX: str = "credential."
CHUNK_KEY_PREFIX: str = "chunk."

SD_JWT_FORMAT: str = "dc+sd-jwt"

MESSAGE_ID_LENGTH: int = 8

DEFAULT_DB_PATH: str = "~/.walletctl/wallet.db"
