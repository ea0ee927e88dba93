from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    env: str = "local"
    log_level: str = "INFO"

    database_url: str = "sqlite:///./storefront.db"

    secret_key: str
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60

    base_url: str = "http://localhost:8000"
    frontend_url: str = "http://localhost:3000"
    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    # Paystack
    paystack_secret_key: str
    paystack_webhook_secret: Optional[str] = None
    paystack_base_url: str = "https://api.paystack.co"
    paystack_timeout_seconds: int = 15

    # Pricing
    currency: str = "NGN"
    tax_rate: float = 0.08
    free_shipping_threshold: float = 50000
    flat_shipping_fee: float = 2500

    order_number_prefix: str = "ORD"
    payment_reference_prefix: str = "UZYHOMES"
    payment_expiry_hours: int = 24

    # Email (Brevo)
    brevo_api_key: str = ""
    mail_from: str = "orders@uzyhomes.com"
    store_name: str = "UZYHOMES"
    admin_emails: List[str] = []
    email_max_attempts: int = 5

    @property
    def webhook_secret(self) -> str:
        return self.paystack_webhook_secret or self.paystack_secret_key

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "allow"


settings = Settings()
