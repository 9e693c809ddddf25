from dataclasses import dataclass
from datetime import timedelta

from core.config import Settings


@dataclass(frozen=True)
class AppContext:
    """
    Process-wide, immutable runtime configuration.

    Built once at startup and handed to every auth component at construction
    time. Nothing in the auth core reads secrets from module globals.
    """
    jwt_secret: str
    polka_key: str
    platform: str
    access_token_ttl: timedelta = timedelta(hours=1)
    refresh_token_ttl: timedelta = timedelta(days=60)
    hash_time_cost: int = 3
    hash_memory_cost: int = 65536
    hash_parallelism: int = 4

    @classmethod
    def from_settings(cls, settings: Settings) -> "AppContext":
        return cls(
            jwt_secret=settings.JWT_SECRET,
            polka_key=settings.POLKA_KEY,
            platform=settings.PLATFORM,
            access_token_ttl=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
            refresh_token_ttl=timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS),
            hash_time_cost=settings.ARGON2_TIME_COST,
            hash_memory_cost=settings.ARGON2_MEMORY_COST,
            hash_parallelism=settings.ARGON2_PARALLELISM,
        )
