from pydantic import Field, AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Read env from container + optionally from files
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.docker"),
        extra="ignore",
        case_sensitive=False,
    )

    # App
    ENVIRONMENT: str = Field(default="docker", validation_alias=AliasChoices("ENVIRONMENT", "environment"))
    APP_NAME: str = Field(default="vendor_onboarding_bot", validation_alias=AliasChoices("APP_NAME", "app_name"))
    LOG_LEVEL: str = Field(default="INFO", validation_alias=AliasChoices("LOG_LEVEL", "log_level"))
    DEBUG: bool = Field(default=False, validation_alias=AliasChoices("DEBUG", "debug"))
    PLATFORM_NAME: str = Field(default="VendorGo", validation_alias=AliasChoices("PLATFORM_NAME", "platform_name"))

    # Sessions
    SESSION_BACKEND: str = Field(default="memory", validation_alias=AliasChoices("SESSION_BACKEND", "session_backend"))
    REDIS_URL: str = Field(
        default="redis://redis:6379/0",
        validation_alias=AliasChoices("REDIS_URL", "redis_url"),
    )
    # 0 keeps sessions forever
    SESSION_TTL_SECONDS: int = Field(default=0, validation_alias=AliasChoices("SESSION_TTL_SECONDS", "session_ttl_seconds"))
    SESSION_LOCK_TIMEOUT_SECONDS: int = Field(
        default=30,
        validation_alias=AliasChoices("SESSION_LOCK_TIMEOUT_SECONDS", "session_lock_timeout_seconds"),
    )
    MAX_INPUT_RETRIES: int = Field(default=3, validation_alias=AliasChoices("MAX_INPUT_RETRIES", "max_input_retries"))

    # Marketplace vendor API (persistence)
    VENDOR_BACKEND: str = Field(default="http", validation_alias=AliasChoices("VENDOR_BACKEND", "vendor_backend"))
    VENDOR_API_BASE_URL: str = Field(
        default="http://localhost:5000",
        validation_alias=AliasChoices("VENDOR_API_BASE_URL", "vendor_api_base_url"),
    )
    VENDOR_API_TIMEOUT_SECONDS: float = Field(
        default=10.0,
        validation_alias=AliasChoices("VENDOR_API_TIMEOUT_SECONDS", "vendor_api_timeout_seconds"),
    )
    STORE_BASE_URL: str = Field(default="https://vendorgo.app/store", validation_alias=AliasChoices("STORE_BASE_URL", "store_base_url"))
    CUSTOMER_APP_URL: str = Field(default="http://localhost:3000/", validation_alias=AliasChoices("CUSTOMER_APP_URL", "customer_app_url"))
    # Bangalore
    DEFAULT_LATITUDE: float = Field(default=12.9716, validation_alias=AliasChoices("DEFAULT_LATITUDE", "default_latitude"))
    DEFAULT_LONGITUDE: float = Field(default=77.5946, validation_alias=AliasChoices("DEFAULT_LONGITUDE", "default_longitude"))

    # WhatsApp Meta
    WHATSAPP_VERIFY_TOKEN: str = Field(default="", validation_alias=AliasChoices("WHATSAPP_VERIFY_TOKEN", "whatsapp_verify_token"))
    WHATSAPP_ACCESS_TOKEN: str = Field(default="", validation_alias=AliasChoices("WHATSAPP_ACCESS_TOKEN", "whatsapp_access_token"))
    WHATSAPP_PHONE_NUMBER_ID: str = Field(default="", validation_alias=AliasChoices("WHATSAPP_PHONE_NUMBER_ID", "whatsapp_phone_number_id"))
    REPLY_VIA_QUEUE: bool = Field(default=False, validation_alias=AliasChoices("REPLY_VIA_QUEUE", "reply_via_queue"))


settings = Settings()
