from typing import Literal

from dotenv import load_dotenv
from pydantic_settings import BaseSettings


class Config(BaseSettings):
    db_url: str = "sqlite+aiosqlite:///./pokemon_battles.db"
    env: Literal["prod", "dev"] = "prod"

    # PokeAPI
    pokeapi_base_url: str = "https://pokeapi.co/api/v2"
    pokeapi_timeout_seconds: float = 10.0

    # Cache & rate limiting
    cache_ttl_seconds: float = 5 * 60  # 5 minutes
    rate_limit_window_seconds: float = 60
    rate_limit_max_requests: int = 100

    # JWT & password settings
    # IMPORTANT: set in environment for production
    jwt_secret: str | None = None
    jwt_algorithm: str = "HS256"
    access_token_ttl_seconds: int = 60 * 60  # 1 hour
    password_hash_iterations: int = 200_000

    # Tournaments
    default_tournament_active_time: int = 60  # minutes

    log_dir: str = "logs"

    @property
    def is_dev(self) -> bool:
        return self.env == "dev"


load_dotenv()
settings = Config()
