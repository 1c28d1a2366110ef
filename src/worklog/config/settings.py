"""Runtime settings loaded from environment variables."""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

from worklog.domain.auth.password_policy import CredentialPolicy

NonEmptyStr = Annotated[str, Field(min_length=1)]
PositiveInt = Annotated[int, Field(gt=0)]
BcryptCost = Annotated[int, Field(ge=4, le=31)]
PasswordLength = Annotated[int, Field(ge=4, le=72)]


class Settings(BaseSettings):
    """Environment-driven application settings."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: NonEmptyStr = Field(validation_alias="DATABASE_URL")
    public_base_url: HttpUrl = Field(
        default="http://localhost:3000",
        validate_default=True,
        validation_alias="PUBLIC_BASE_URL",
    )
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

    password_reset_token_validity_minutes: PositiveInt = Field(
        default=60,
        validation_alias="PASSWORD_RESET_TOKEN_VALIDITY_MINUTES",
    )
    password_hash_cost_factor: BcryptCost = Field(
        default=10,
        validation_alias="PASSWORD_HASH_COST_FACTOR",
    )
    password_min_length: PasswordLength = Field(
        default=8,
        validation_alias="PASSWORD_MIN_LENGTH",
    )
    generated_password_length: PasswordLength = Field(
        default=16,
        validation_alias="GENERATED_PASSWORD_LENGTH",
    )
    password_denylist_file: NonEmptyStr | None = Field(
        default=None,
        validation_alias="PASSWORD_DENYLIST_FILE",
    )
    auth_token_ttl_minutes: PositiveInt = Field(
        default=480,
        validation_alias="AUTH_TOKEN_TTL_MINUTES",
    )

    email_provider: Literal["preview", "smtp"] = Field(
        default="preview",
        validation_alias="EMAIL_PROVIDER",
    )
    smtp_host: NonEmptyStr = Field(default="localhost", validation_alias="SMTP_HOST")
    smtp_port: PositiveInt = Field(default=1025, validation_alias="SMTP_PORT")
    smtp_user: str | None = Field(default=None, validation_alias="SMTP_USER")
    smtp_password: str | None = Field(default=None, validation_alias="SMTP_PASSWORD")
    smtp_from: NonEmptyStr = Field(
        default="noreply@work-management.local",
        validation_alias="SMTP_FROM",
    )
    smtp_starttls: bool = Field(default=False, validation_alias="SMTP_STARTTLS")

    bootstrap_admin_email: NonEmptyStr | None = Field(
        default=None,
        validation_alias="BOOTSTRAP_ADMIN_EMAIL",
    )
    bootstrap_admin_password: NonEmptyStr | None = Field(
        default=None,
        validation_alias="BOOTSTRAP_ADMIN_PASSWORD",
    )
    bootstrap_admin_password_file: NonEmptyStr | None = Field(
        default=None,
        validation_alias="BOOTSTRAP_ADMIN_PASSWORD_FILE",
    )

    def credential_policy(self) -> CredentialPolicy:
        """Return the explicit credential policy derived from these settings."""

        return CredentialPolicy(
            token_validity_minutes=self.password_reset_token_validity_minutes,
            hash_cost_factor=self.password_hash_cost_factor,
            min_password_length=self.password_min_length,
            generated_password_length=max(
                self.generated_password_length,
                self.password_min_length,
            ),
        )


@lru_cache(maxsize=1)
def load_settings() -> Settings:
    """Load and cache application settings."""

    return Settings()  # type: ignore[call-arg]
