from pydantic_settings import SettingsConfigDict

from .bouncer import BouncerSettings
from .github import GitHubSettings


class Settings(BouncerSettings, GitHubSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    project_name: str = "dependabot-bouncer"
    debug: bool = False
