"""Application settings shared by every package.

Values come from environment variables (or a local ``.env`` file). Missing
provider credentials are not errors: the affected notification channel
degrades to a log-only channel and the payment verifier rejects every
signature until a secret is configured.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # Runtime
    environment: str = Field(default="development", alias="ENVIRONMENT")
    store_name: str = Field(default="Storefront", alias="STORE_NAME")
    frontend_url: str = Field(default="http://localhost:8080", alias="FRONTEND_URL")
    currency: str = Field(default="INR", alias="CURRENCY")
    default_delivery_days: int = Field(default=5, alias="DEFAULT_DELIVERY_DAYS")

    # Payment gateway
    payment_gateway: str = Field(default="fake", alias="PAYMENT_GATEWAY")
    payment_key_id: str | None = Field(default=None, alias="PAYMENT_KEY_ID")
    payment_key_secret: str | None = Field(default=None, alias="PAYMENT_KEY_SECRET")
    payment_api_url: str = Field(default="https://api.razorpay.com/v1", alias="PAYMENT_API_URL")
    payment_timeout_seconds: float = Field(default=10.0, alias="PAYMENT_TIMEOUT_SECONDS")

    # Email (SMTP)
    smtp_host: str = Field(default="smtp.gmail.com", alias="SMTP_HOST")
    smtp_port: int = Field(default=587, alias="SMTP_PORT")
    smtp_username: str | None = Field(default=None, alias="SMTP_USERNAME")
    smtp_password: str | None = Field(default=None, alias="SMTP_PASSWORD")
    smtp_use_tls: bool = Field(default=True, alias="SMTP_USE_TLS")
    from_email: str | None = Field(default=None, alias="FROM_EMAIL")
    from_name: str = Field(default="Support", alias="FROM_NAME")

    # SMS and messaging app (Twilio-compatible REST API)
    messaging_api_url: str = Field(default="https://api.twilio.com/2010-04-01", alias="MESSAGING_API_URL")
    sms_account_sid: str | None = Field(default=None, alias="SMS_ACCOUNT_SID")
    sms_auth_token: str | None = Field(default=None, alias="SMS_AUTH_TOKEN")
    sms_from_number: str | None = Field(default=None, alias="SMS_FROM_NUMBER")
    whatsapp_account_sid: str | None = Field(default=None, alias="WHATSAPP_ACCOUNT_SID")
    whatsapp_auth_token: str | None = Field(default=None, alias="WHATSAPP_AUTH_TOKEN")
    whatsapp_from_number: str | None = Field(default=None, alias="WHATSAPP_FROM_NUMBER")

    # Notification worker pools
    notification_workers: int = Field(default=4, alias="NOTIFICATION_WORKERS")
    channel_workers: int = Field(default=6, alias="CHANNEL_WORKERS")

    # Inventory ledger
    inventory_ledger: str = Field(default="memory", alias="INVENTORY_LEDGER")
    inventory_database_uri: str = Field(default="sqlite:///inventory.db", alias="INVENTORY_DATABASE_URI")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def email_configured(self) -> bool:
        return bool(self.smtp_username and self.smtp_password)

    @property
    def sms_configured(self) -> bool:
        return bool(self.sms_account_sid and self.sms_auth_token and self.sms_from_number)

    @property
    def whatsapp_configured(self) -> bool:
        return bool(self.whatsapp_account_sid and self.whatsapp_auth_token and self.whatsapp_from_number)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (cached; call ``cache_clear()`` in tests)."""
    return Settings()
