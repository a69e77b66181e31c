from dataclasses import dataclass, field
import os


def _as_bool(value: str) -> bool:
    return value.lower() in ("1", "true", "yes")


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass(frozen=True)
class Settings:
    entrance_fee: int = int(os.getenv("ENTRANCE_FEE", "100"))
    raffle_interval_seconds: int = int(os.getenv("RAFFLE_INTERVAL_SECONDS", "30"))
    raffle_id: str = os.getenv("RAFFLE_ID", "default")
    store_backend: str = os.getenv("STORE_BACKEND", "memory").lower()
    oracle_mode: str = os.getenv("ORACLE_MODE", "local").lower()
    oracle_address: str = os.getenv("ORACLE_ADDRESS", "local-oracle")
    oracle_url: str = os.getenv("ORACLE_URL", "")
    oracle_callback_url: str = os.getenv("ORACLE_CALLBACK_URL", "")
    oracle_callback_token: str = os.getenv("ORACLE_CALLBACK_TOKEN", "")
    oracle_key_hash: str = os.getenv("ORACLE_KEY_HASH", "")
    oracle_subscription_id: int = int(os.getenv("ORACLE_SUBSCRIPTION_ID", "0"))
    oracle_request_confirmations: int = int(os.getenv("ORACLE_REQUEST_CONFIRMATIONS", "3"))
    oracle_callback_gas_limit: int = int(os.getenv("ORACLE_CALLBACK_GAS_LIMIT", "500000"))
    oracle_num_words: int = int(os.getenv("ORACLE_NUM_WORDS", "1"))
    oracle_timeout_seconds: float = float(os.getenv("ORACLE_TIMEOUT_SECONDS", "10"))
    payout_url: str = os.getenv("PAYOUT_URL", "")
    db_host: str = os.getenv("DB_HOST", "")
    db_port: int = int(os.getenv("DB_PORT", "5432"))
    db_name: str = os.getenv("DB_NAME", "")
    db_user: str = os.getenv("DB_USER", "")
    db_password: str = os.getenv("DB_PASSWORD", "")
    auto_migrate: bool = _as_bool(os.getenv("AUTO_MIGRATE", "false"))
    cors_allow_origins: list[str] = field(
        default_factory=lambda: _split_csv(os.getenv("CORS_ALLOW_ORIGINS", "*"))
    )
    cors_allow_methods: list[str] = field(
        default_factory=lambda: _split_csv(os.getenv("CORS_ALLOW_METHODS", "*"))
    )
    cors_allow_headers: list[str] = field(
        default_factory=lambda: _split_csv(os.getenv("CORS_ALLOW_HEADERS", "*"))
    )
    expose_errors: bool = _as_bool(os.getenv("EXPOSE_ERRORS", "true"))


settings = Settings()


def db_configured() -> bool:
    return all([settings.db_host, settings.db_name, settings.db_user, settings.db_password])
