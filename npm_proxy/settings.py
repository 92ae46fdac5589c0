from pydantic import field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from npm_proxy.utils.settings_utils import DockerSecretsSettingsSource

ONE_MEGABYTE = 1024 * 1024
ONE_MINUTE = 60


class MirrorConfig(BaseSettings):
    NPM_MIRROR_URLS: list[str] = [
        "http://115.182.90.219:31449",
        "https://registry.npmjs.org",
    ]
    """Mirrors queried concurrently for every lookup.
    The first one answering with a 200 wins.
    """

    NPM_CONNECT_TIMEOUT: float = 10.0
    NPM_READ_TIMEOUT: float = 60.0
    NPM_USER_AGENT: str = "npm-mirror-proxy"
    NPM_MAX_KEEPALIVE_CONNECTIONS: int = 20

    @field_validator("NPM_MIRROR_URLS")
    @classmethod
    def strip_trailing_slashes(cls, value: list[str]) -> list[str]:
        mirrors = [url.rstrip("/") for url in value if url.strip()]
        if not mirrors:
            raise ValueError("NPM_MIRROR_URLS must contain at least one mirror")
        return mirrors


class CacheConfig(BaseSettings):
    CACHE_MAX_BYTES: int = 40 * ONE_MEGABYTE
    CACHE_POSITIVE_TTL_SECONDS: float = ONE_MINUTE
    CACHE_NEGATIVE_TTL_SECONDS: float = 5 * ONE_MINUTE


class Settings(
    MirrorConfig,
    CacheConfig,
    BaseSettings,
):
    model_config = SettingsConfigDict(
        env_file=(".env", ".env.prod", ".env.test"),
        extra="allow",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """
        Define the priority order for settings sources.

        Priority (highest to lowest):
        1. Init arguments
        2. Docker secrets from files (reads *_FILE env vars)
        3. Environment variables
        4. .env files
        5. Default values
        """
        return (
            init_settings,
            DockerSecretsSettingsSource(settings_cls),
            env_settings,
            dotenv_settings,
            file_secret_settings,
        )


settings = Settings()
