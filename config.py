from dataclasses import dataclass
import os
from dotenv import load_dotenv

load_dotenv()

DEFAULT_SGG_API_URL = "https://api.start.gg/gql/alpha"

@dataclass(frozen=True)
class StartGGCredentials:
    api_url: str
    api_key: str

@dataclass(frozen=True)
class DatabaseCredentials:
    url: str
    api_key: str
    email: str
    password: str

@dataclass(frozen=True)
class SchedulerSettings:
    batch_size: int = 3
    batch_delay: float = 0.5
    fetch_cap: int = 100
    ranking_epsilon: float = 0.1


def _read_int_env(name: str, default: int, *, min_value: int | None = None) -> int:
    try:
        v = int(os.getenv(name, str(default)))
    except ValueError:
        v = default
    if min_value is not None:
        v = max(min_value, v)
    return v


def _read_float_env(name: str, default: float, *, min_value: float | None = None) -> float:
    try:
        v = float(os.getenv(name, str(default)))
    except ValueError:
        v = default
    if min_value is not None:
        v = max(min_value, v)
    return v


class EnvironmentConfig:
    """Loads and validates required environment configuration."""
    @staticmethod
    def load_startgg() -> StartGGCredentials:
        api_url = os.getenv("SGG_API_URL") or DEFAULT_SGG_API_URL
        api_key = os.getenv("SGG_API_KEY")
        if not api_key:
            raise ValueError("SGG_API_KEY must be set in the environment variables.")
        return StartGGCredentials(api_url=api_url, api_key=api_key)

    @staticmethod
    def load_database() -> DatabaseCredentials:
        database_url = os.getenv("DATABASE_API_URL")
        database_api = os.getenv("DATABASE_API_KEY")
        if not database_url or not database_api:
            raise ValueError("DATABASE_API_URL and DATABASE_API_KEY must be set in the environment variables.")

        email = os.getenv("DATABASE_LOGIN_EMAIL")
        password = os.getenv("DATABASE_LOGIN_PASSWORD")
        if not email or not password:
            raise ValueError("DATABASE_LOGIN_EMAIL and DATABASE_LOGIN_PASSWORD must be set in the environment variables.")

        return DatabaseCredentials(
            url=database_url,
            api_key=database_api,
            email=email,
            password=password,
        )

    @staticmethod
    def load_scheduler() -> SchedulerSettings:
        defaults = SchedulerSettings()
        return SchedulerSettings(
            batch_size=_read_int_env("H2H_BATCH_SIZE", defaults.batch_size, min_value=1),
            batch_delay=_read_float_env("H2H_BATCH_DELAY", defaults.batch_delay, min_value=0.0),
            fetch_cap=_read_int_env("H2H_FETCH_CAP", defaults.fetch_cap, min_value=1),
            ranking_epsilon=_read_float_env("H2H_RANKING_EPSILON", defaults.ranking_epsilon, min_value=0.0),
        )
