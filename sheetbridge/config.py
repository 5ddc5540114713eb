from functools import lru_cache

from pydantic_settings import BaseSettings

DEFAULT_OAUTH_CLIENT_ID = "184409999197-366opgvplluh0bura1n0holvtmvu9i44.apps.googleusercontent.com"


class Settings(BaseSettings):
    host: str = "127.0.0.1"
    port: int = 9000
    log_level: str = "INFO"
    gsheets_access_token: str = ""
    gsheets_enable_infer_types: bool = False
    gsheets_oauth_client_id: str = DEFAULT_OAUTH_CLIENT_ID
    gsheets_oauth_redirect_uri: str = "https://auth.pg-gsheets.com"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache
def get_settings() -> Settings:
    return Settings()
