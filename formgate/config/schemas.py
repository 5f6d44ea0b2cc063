"""
Configuration Schemas for formgate.

Pydantic models for resolver and HTTP adapter settings.

Security:
    The session signing secret uses SecretStr to prevent accidental
    logging. Access the value with `.get_secret_value()`.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, SecretStr, field_validator

from formgate.bridge import DEFAULT_SESSION_KEY

DEFAULT_STATE_FIELD = "__resolver_state"


class FormgateSettings(BaseModel):
    """
    Application settings model.

    Used for type-safe settings access by the resolver, the bridge, the
    rehydration pipeline and the HTTP layer.
    """

    # Service identity
    service_name: str = "formgate"
    environment: str = "development"
    debug: bool = False
    log_level: str = Field("INFO", description="Root log level for the HTTP app")

    # Resolver
    session_key: str = Field(DEFAULT_SESSION_KEY, description="Session key of the bridge payload")
    state_field_name: str = Field(DEFAULT_STATE_FIELD, description="Name of the state snapshot field")
    form_pages: list[str] = Field(default_factory=lambda: ["edit", "new"])
    rehydrate_methods: list[str] = Field(default_factory=lambda: ["GET"])

    # HTTP
    redirect_status_code: int = Field(303, ge=300, le=399)
    session_secret: SecretStr = Field(
        default=SecretStr("change-me"),
        description="Secret used to sign the session cookie",
    )
    session_cookie: str = "formgate_session"

    @field_validator("rehydrate_methods")
    @classmethod
    def _upper_methods(cls, methods: list[str]) -> list[str]:
        return [m.upper() for m in methods]

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, level: str) -> str:
        return level.upper()

    class Config:
        extra = "forbid"
