"""Application configuration via Pydantic BaseSettings."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed settings for environment-driven configuration."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # When set, every webhook must carry a valid X-Twilio-Signature
    twilio_auth_token: str | None = None
    # Public scheme://host Twilio uses to reach us, when behind a proxy
    public_base_url: str | None = None
    log_level: str = "INFO"
    say_voice: str = "alice"
    max_recording_length: int = 30


settings = Settings()
