import tomllib
from functools import cached_property
from pathlib import Path
from typing import ClassVar

from pydantic import computed_field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from app.types.exceptions import (
    DotenvInvalidVariableError,
    DotenvMissingVariableError,
)


class Settings(BaseSettings):
    """
    Settings for the HEMIS panel API
    The class is based on a yaml configuration file: `/config.yaml`.

    All undefined variables will be populated from:
    1. An environment variable
    2. The yaml config.yaml file
    3. The dotenv .env file

    See [Pydantic Settings documentation](https://docs.pydantic.dev/latest/concepts/pydantic_settings/#dotenv-env-support) for more information.
    See [FastAPI settings](https://fastapi.tiangolo.com/advanced/settings/) article for best practices with settings.

    To access these settings, the `get_settings` dependency should be used.
    """

    # By default, the settings are loaded from `config.yaml` and `.env` but this can be overridden using
    # `_env_file` and `_yaml_file` parameters during instantiation
    # Ex: `Settings(_env_file=".env.dev", _yaml_file="config.dev.yaml")`
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        yaml_file="config.yaml",
        case_sensitive=False,
        extra="ignore",
    )

    # Pydantic does not support overriding the yaml file path with a `_yaml_file` parameter
    # See https://github.com/pydantic/pydantic-settings/issues/259
    # We set it on the class before calling the parent constructor
    _yaml_file: ClassVar[str]

    def __init__(self, _yaml_file, _env_file, **kwargs):
        Settings._yaml_file = _yaml_file
        super().__init__(_env_file=_env_file, **kwargs)

    # The order of the sources defines their precedence:
    # init arguments > environment variables > yaml file > dotenv
    # See https://docs.pydantic.dev/latest/concepts/pydantic_settings/#important-notes
    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            YamlConfigSettingsSource(settings_cls, yaml_file=cls._yaml_file),
            dotenv_settings,
        )

    ##################
    # Authentication #
    ##################

    # ACCESS_TOKEN_SECRET_KEY should contain a random string with enough entropy (at least 32 bytes long) to securely sign admin session JWTs
    ACCESS_TOKEN_SECRET_KEY: str

    # Roles whose holders are granted every permission (`*`)
    SUPER_ADMIN_ROLES: list[str] = ["super_admin"]

    ##################
    # Panel settings #
    ##################

    # By default, only production's records are logged
    LOG_DEBUG_MESSAGES: bool = False

    # Origins for the CORS middleware. `["http://localhost"]` can be used for development.
    # See https://fastapi.tiangolo.com/tutorial/cors/
    # It should begin with 'http://' or 'https:// and should never end with a '/'
    CORS_ORIGINS: list[str] = []

    ############################
    # PostgreSQL configuration #
    ############################
    # If set, the application use a SQLite database instead of PostgreSQL, for testing or development purposes
    SQLITE_DB: str | None = None
    POSTGRES_HOST: str = ""
    POSTGRES_USER: str = ""
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = ""
    DATABASE_DEBUG: bool = False  # If True, the database will log all queries

    ########################
    # Redis configuration #
    ########################
    # Redis is used for the menu cache and the rate limiter
    # Without Redis, menus are computed on every request and requests are not rate limited
    REDIS_HOST: str | None = None
    REDIS_PORT: int = 6379
    REDIS_PASSWORD: str | None = None
    REDIS_LIMIT: int = 1000
    REDIS_WINDOW: int = 60

    # Rate limit requests based on REDIS_LIMIT and REDIS_WINDOW
    ENABLE_RATE_LIMITER: bool = True

    ########
    # Menu #
    ########

    # Yaml file containing the menu tree, the legacy route table and the permission aliases
    MENU_CONFIG_FILE: str = "assets/menu.yaml"
    # Directory containing one `<locale>.yaml` label translation file per locale
    MENU_TRANSLATIONS_DIR: str = "assets/translations"
    # Menu cache time to live, in seconds
    MENU_CACHE_TTL: int = 3200
    MENU_LOCALES: list[str] = ["uz", "oz", "ru", "en"]
    DEFAULT_LOCALE: str = "uz"
    # Keep legacy path based urls in menus instead of mapping them with the route table
    MENU_PRESERVE_LEGACY_PATHS: bool = True

    ###################
    # Tokens validity #
    ###################

    # Admin session JWT
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30
    # OAuth provider
    OAUTH_ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    OAUTH_REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 30  # 30 days
    AUTHORIZATION_CODE_EXPIRE_MINUTES: int = 10

    #############################
    # pyproject.toml parameters #
    #############################

    @computed_field  # type: ignore[prop-decorator]
    @cached_property
    def HEMIS_VERSION(cls) -> str:
        with Path("pyproject.toml").open("rb") as pyproject_binary:
            pyproject = tomllib.load(pyproject_binary)
        return str(pyproject["project"]["version"])

    ######################################
    # Automatically generated parameters #
    ######################################

    @computed_field  # type: ignore[prop-decorator]
    @cached_property
    def REDIS_URL(cls) -> str | None:
        if cls.REDIS_HOST:
            # We need to include `:` before the password
            return (
                f"redis://:{cls.REDIS_PASSWORD or ''}@{cls.REDIS_HOST}:{cls.REDIS_PORT}"
            )
        return None

    #######################################
    #          Fields validation          #
    #######################################

    @model_validator(mode="after")
    def check_database_settings(self) -> "Settings":
        """
        All fields are optional, but the dotenv should configure SQLITE_DB or a Postgres database
        """
        if not (
            self.SQLITE_DB
            or (
                self.POSTGRES_HOST
                and self.POSTGRES_USER
                and self.POSTGRES_PASSWORD
                and self.POSTGRES_DB
            )
        ):
            raise DotenvMissingVariableError(  # noqa: TRY003
                "Either SQLITE_DB or POSTGRES_HOST, POSTGRES_USER, POSTGRES_PASSWORD and POSTGRES_DB",
            )

        return self

    @model_validator(mode="after")
    def check_secrets(self) -> "Settings":
        if not self.ACCESS_TOKEN_SECRET_KEY:
            raise DotenvMissingVariableError(
                "ACCESS_TOKEN_SECRET_KEY",
            )

        return self

    @model_validator(mode="after")
    def check_locales(self) -> "Settings":
        if not self.MENU_LOCALES:
            raise DotenvMissingVariableError("MENU_LOCALES")
        if self.DEFAULT_LOCALE not in self.MENU_LOCALES:
            raise DotenvInvalidVariableError(  # noqa: TRY003
                f"DEFAULT_LOCALE {self.DEFAULT_LOCALE} must be one of MENU_LOCALES {self.MENU_LOCALES}",
            )

        return self

    @model_validator(mode="after")
    def init_cached_property(self) -> "Settings":
        """
        Cached properties are computed when they are accessed for the first time.
        Calling them here makes a wrong configuration fail on startup instead of at runtime.
        """
        self.HEMIS_VERSION  # noqa: B018
        self.REDIS_URL  # noqa: B018

        return self


def construct_prod_settings() -> Settings:
    """
    Return the production settings
    """
    return Settings(_env_file=".env", _yaml_file="config.yaml")
