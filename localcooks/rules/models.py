from __future__ import annotations

from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field

from localcooks.components.contact import ContactConfig
from localcooks.components.newsletter import NewsletterConfig
from localcooks.components.retry import RetryPolicy
from localcooks.components.tokens import MIN_TOKEN_BYTES


class StrictModel(BaseModel):
    model_config = ConfigDict(extra="forbid")


class NewsletterRules(StrictModel):
    token_ttl_days: int = Field(default=7, ge=1)
    token_bytes: int = Field(default=32, ge=MIN_TOKEN_BYTES)
    send_welcome_email: bool = True


class ContactRules(StrictModel):
    token_ttl_days: int = Field(default=7, ge=1)
    send_confirmation_email: bool = True


class RetryRules(StrictModel):
    max_attempts: int = Field(default=3, ge=1, le=10)
    base_delay_ms: int = Field(default=1000, ge=0)


class StorageRules(StrictModel):
    busy_timeout_seconds: float = Field(default=10.0, gt=0)


class EmailRules(StrictModel):
    site_name: str = "LocalCooks"
    base_url: str = "https://localcook.shop"
    sender_name: str = "LocalCooks"
    smtp_host: str = "smtp.hostinger.com"
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_timeout_seconds: float = Field(default=10.0, gt=0)
    newsletter_verify_path: str = "/api/verify-email"
    contact_verify_path: str = "/api/verify-contact"


class CorsRules(StrictModel):
    allow_origins: list[str] = Field(default_factory=lambda: ["*"])
    allow_methods: list[str] = Field(default_factory=lambda: ["GET", "POST", "OPTIONS"])
    allow_headers: list[str] = Field(default_factory=lambda: ["Content-Type"])
    max_age_seconds: int = Field(default=86400, ge=0)


class Rules(StrictModel):
    newsletter: NewsletterRules = Field(default_factory=NewsletterRules)
    contact: ContactRules = Field(default_factory=ContactRules)
    retry: RetryRules = Field(default_factory=RetryRules)
    storage: StorageRules = Field(default_factory=StorageRules)
    email: EmailRules = Field(default_factory=EmailRules)
    cors: CorsRules = Field(default_factory=CorsRules)

    def newsletter_config(self) -> NewsletterConfig:
        return NewsletterConfig(
            token_ttl=timedelta(days=self.newsletter.token_ttl_days),
            token_bytes=self.newsletter.token_bytes,
            send_welcome_email=self.newsletter.send_welcome_email,
        )

    def contact_config(self) -> ContactConfig:
        return ContactConfig(
            token_ttl=timedelta(days=self.contact.token_ttl_days),
            token_bytes=self.newsletter.token_bytes,
            send_confirmation_email=self.contact.send_confirmation_email,
        )

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_attempts=self.retry.max_attempts,
            base_delay_seconds=self.retry.base_delay_ms / 1000,
        )
