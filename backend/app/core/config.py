from typing import Optional, List
from urllib.parse import urlsplit

from pydantic import computed_field, Field, AliasChoices, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Known insecure default values that must be changed in production
_INSECURE_SECRET_KEYS = {
    "development_secret",
    "your-secret-key-change-this-in-production-min-32-chars",
    "changeme",
    "secret",
}
_INSECURE_DB_PASSWORDS = {
    "postgres",
    "password",
    "changeme",
}

_INSECURE_ALLOWED_ORIGINS_DEFAULTS = {
    "http://localhost:3000",
    "http://127.0.0.1:3000",
}

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def _extract_password_from_database_url(database_url: str | None) -> str | None:
    if not database_url:
        return None
    try:
        return urlsplit(database_url).password
    except ValueError:
        return None


class Settings(BaseSettings):
    # Allow comma-separated env vars for list fields like ALLOWED_ORIGINS
    model_config = SettingsConfigDict(env_file=".env", env_parse_delimiter=",", extra="ignore")
    PROJECT_NAME: str = "Web3 Payroll"
    VERSION: str = "1.0.0"
    API_PREFIX: str = "/api"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True

    # CORS
    # Accepts either a JSON array or a comma-separated string, normalized below.
    ALLOWED_ORIGINS: List[str] | str = Field(
        default_factory=lambda: ["http://localhost:3000"],
        validation_alias=AliasChoices("ALLOWED_ORIGINS", "FRONTEND_URL"),
    )

    # Database settings
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_SERVER: str = Field(
        default="localhost",
        validation_alias=AliasChoices("POSTGRES_SERVER", "POSTGRES_HOST"),
    )
    POSTGRES_PORT: int = 5432
    POSTGRES_DB: str = "web3_payroll"

    DB_POOL_SIZE: int = Field(default=10, description="Number of persistent DB connections")
    DB_MAX_OVERFLOW: int = Field(default=20, description="Max additional connections under load")

    # Full DB URL. If not provided, we build it from POSTGRES_*.
    DATABASE_URL: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("DATABASE_URL", "SQLALCHEMY_DATABASE_URI"),
    )

    SQLALCHEMY_ECHO: bool = False

    # Bearer tokens
    SECRET_KEY: str = Field(
        default="development_secret",
        validation_alias=AliasChoices("JWT_SECRET", "SECRET_KEY"),
    )
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    SIGNIN_MESSAGE_TTL_SECONDS: int = 300

    # Identity injected when a request carries no valid bearer token
    DEFAULT_USER_ADDRESS: str = ZERO_ADDRESS
    DEFAULT_USER_ROLE: str = "admin"

    # Request limits
    RATE_LIMIT_DEFAULT: str = "1000/minute"
    RATE_LIMIT_STORAGE_URI: Optional[str] = None
    MAX_REQUEST_BODY_BYTES: int = 1024 * 1024

    # ENS
    ENS_NETWORK: str = "sepolia"
    MAINNET_RPC_URL: str = "https://mainnet.infura.io/v3/demo"
    SEPOLIA_RPC_URL: str = "https://sepolia.infura.io/v3/demo"
    LOCAL_RPC_URL: str = "http://127.0.0.1:8545"
    ENS_RPC_TIMEOUT_SECONDS: int = 10
    ENS_PARENT_DOMAIN: str = "company.eth"
    ENS_DEFAULT_RESOLVER: str = "0x4976fb03C32e5B8cfe2b6cCB31c09Ba78EBaBa41"
    ENS_REGISTRATION_COST_ETH: str = "0.005"

    # In-process payroll ledger
    LEDGER_OWNER_ADDRESS: str = ZERO_ADDRESS
    LEDGER_COMPANY_DOMAIN: str = "company.eth"

    @computed_field
    @property
    def IS_PRODUCTION(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @property
    def is_sqlite(self) -> bool:
        return bool(self.DATABASE_URL) and self.DATABASE_URL.startswith("sqlite")

    def model_post_init(self, __context):
        """
        Validate configuration on startup. In production, fail hard if insecure defaults are detected.
        """
        if not self.DATABASE_URL:
            self.DATABASE_URL = (
                f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
                f"@{self.POSTGRES_SERVER}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
            )

        if not self.IS_PRODUCTION:
            return

        errors = []

        if self.SECRET_KEY in _INSECURE_SECRET_KEYS or len(self.SECRET_KEY) < 32:
            errors.append(
                "SECRET_KEY is insecure. Generate a new key with: "
                "python -c \"import secrets; print(secrets.token_urlsafe(32))\""
            )

        db_url_password = _extract_password_from_database_url(self.DATABASE_URL)
        if db_url_password and db_url_password in _INSECURE_DB_PASSWORDS:
            errors.append("DATABASE_URL contains an insecure password.")

        if not self.ALLOWED_ORIGINS or set(self.ALLOWED_ORIGINS).issubset(_INSECURE_ALLOWED_ORIGINS_DEFAULTS):
            errors.append(
                "ALLOWED_ORIGINS must be set to your domain(s) in production (not localhost defaults)."
            )

        if self.DEBUG:
            errors.append("DEBUG must be False in production.")

        if self.ENS_NETWORK not in ("mainnet", "sepolia", "local"):
            errors.append("ENS_NETWORK must be one of: mainnet, sepolia, local.")

        if errors:
            error_msg = "Production configuration errors:\n" + "\n".join(f"  - {e}" for e in errors)
            raise ValueError(error_msg)

    @field_validator("ALLOWED_ORIGINS", mode="before")
    @classmethod
    def _split_origins(cls, value):
        if isinstance(value, str):
            return [v.strip() for v in value.split(",") if v.strip()]
        return value


settings = Settings()
