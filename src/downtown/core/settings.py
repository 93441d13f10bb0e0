"""Application settings and configuration.

This module defines all configuration options for the downtown API.
Settings are loaded from environment variables (or a `.env` file) with
sensible defaults; secrets such as the JWT signing key and vendor credentials
have no defaults and must be supplied by the deployment.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from cryptography.hazmat.primitives import serialization
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SmsSettings(BaseModel):
    """Connection and template settings for the SMS/alimtalk vendor."""

    base_url: str
    api_key: str | None
    user_id: str | None
    sender_key: str | None
    template_code: str | None
    sender_phone: str | None
    subject: str
    token_lifetime_seconds: int
    test_mode: bool
    timeout_seconds: float


class StorageSettings(BaseModel):
    """Settings for the S3-compatible object store."""

    bucket: str
    region: str
    endpoint_url: str | None
    public_base_url: str | None


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application metadata
    app_name: str = Field(default="downtown", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Database configuration
    database_url: str = Field(default="sqlite:///./downtown.db", alias="DATABASE_URL")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # JWT authentication settings (RS256 key pair in PEM format)
    jwt_private_key: str | None = Field(default=None, alias="JWT_PRIVATE_KEY")
    jwt_private_key_file: str | None = Field(default=None, alias="JWT_PRIVATE_KEY_FILE")
    jwt_public_key: str | None = Field(default=None, alias="JWT_PUBLIC_KEY")
    jwt_issuer: str = Field(default="https://mrdalio.com/api", alias="JWT_ISSUER")
    access_token_max_age: int = Field(default=60 * 60, alias="ACCESS_TOKEN_MAX_AGE")
    refresh_token_max_age: int = Field(
        default=60 * 60 * 24 * 30,
        alias="REFRESH_TOKEN_MAX_AGE",
    )

    # Phone verification
    verification_code_ttl_minutes: int = Field(default=30, alias="VERIFICATION_CODE_TTL_MINUTES")
    verification_resend_interval_seconds: int = Field(
        default=0,
        alias="VERIFICATION_RESEND_INTERVAL_SECONDS",
    )

    # SMS vendor (aligo alimtalk)
    sms_base_url: str = Field(default="https://kakaoapi.aligo.in", alias="SMS_BASE_URL")
    sms_api_key: str | None = Field(default=None, alias="SMS_API_KEY")
    sms_user_id: str | None = Field(default=None, alias="SMS_USER_ID")
    sms_sender_key: str | None = Field(default=None, alias="SMS_SENDER_KEY")
    sms_template_code: str | None = Field(default=None, alias="SMS_TEMPLATE_CODE")
    sms_sender_phone: str | None = Field(default=None, alias="SMS_SENDER_PHONE")
    sms_subject: str = Field(default="이프 휴대폰 인증", alias="SMS_SUBJECT")
    sms_message_template: str = Field(
        default="이프 회원가입을 위해 인증번호 [{code}]를 입력해주세요.",
        alias="SMS_MESSAGE_TEMPLATE",
    )
    sms_token_lifetime_seconds: int = Field(default=30, alias="SMS_TOKEN_LIFETIME_SECONDS")
    sms_test_mode: bool = Field(default=True, alias="SMS_TEST_MODE")
    sms_timeout_seconds: float = Field(default=10.0, alias="SMS_TIMEOUT_SECONDS")

    # Object storage
    s3_bucket: str = Field(default="downtown-media", alias="AWS_S3_BUCKET")
    s3_region: str = Field(default="ap-northeast-2", alias="AWS_REGION")
    s3_endpoint_url: str | None = Field(default=None, alias="AWS_S3_ENDPOINT_URL")
    s3_public_base_url: str | None = Field(default=None, alias="AWS_S3_PUBLIC_BASE_URL")
    default_profile_picture: str = Field(
        default="https://respec-public.s3.ap-northeast-2.amazonaws.com/profile_image/profile_image_default.png",
        alias="DEFAULT_PROFILE_PICTURE",
    )

    # Pagination
    post_page_size: int = Field(default=20, alias="POST_PAGE_SIZE")
    post_page_size_max: int = Field(default=100, alias="POST_PAGE_SIZE_MAX")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling such as Alembic."""
        url = self.database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def private_key_pem(self) -> str:
        """Return the PEM-encoded JWT signing key.

        Raises:
            RuntimeError: If neither JWT_PRIVATE_KEY nor JWT_PRIVATE_KEY_FILE is set.
        """
        if self.jwt_private_key:
            return self.jwt_private_key
        if self.jwt_private_key_file:
            return Path(self.jwt_private_key_file).read_text(encoding="utf-8")
        raise RuntimeError("JWT_PRIVATE_KEY or JWT_PRIVATE_KEY_FILE must be set")

    @property
    def public_key_pem(self) -> str:
        """Return the PEM-encoded JWT verification key, deriving it when absent."""
        if self.jwt_public_key:
            return self.jwt_public_key
        return derive_public_key(self.private_key_pem)

    @property
    def sms(self) -> SmsSettings:
        """Return the SMS vendor configuration handed to the SMS client."""
        return SmsSettings(
            base_url=self.sms_base_url,
            api_key=self.sms_api_key,
            user_id=self.sms_user_id,
            sender_key=self.sms_sender_key,
            template_code=self.sms_template_code,
            sender_phone=self.sms_sender_phone,
            subject=self.sms_subject,
            token_lifetime_seconds=self.sms_token_lifetime_seconds,
            test_mode=self.sms_test_mode,
            timeout_seconds=self.sms_timeout_seconds,
        )

    @property
    def storage(self) -> StorageSettings:
        """Return the object storage configuration."""
        return StorageSettings(
            bucket=self.s3_bucket,
            region=self.s3_region,
            endpoint_url=self.s3_endpoint_url,
            public_base_url=self.s3_public_base_url,
        )


@lru_cache(maxsize=4)
def derive_public_key(private_key_pem: str) -> str:
    """Derive the PEM SubjectPublicKeyInfo for a PEM private key."""
    private_key = serialization.load_pem_private_key(
        private_key_pem.encode("utf-8"),
        password=None,
    )
    return private_key.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("utf-8")


settings = Settings()  # type: ignore[call-arg]
