"""
Application Configuration - Environment Variables & Settings
"""
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field, field_validator
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """
    # Application
    DEBUG: bool = Field(default=False)

    # CORS - stored as comma-separated string
    ALLOWED_ORIGINS_STR: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        alias="ALLOWED_ORIGINS"
    )

    @computed_field
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        """Parse comma-separated origins into list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS_STR.split(',') if origin.strip()]

    # Flight source - Amadeus
    AMADEUS_API_KEY: str = Field(default="")
    AMADEUS_API_SECRET: str = Field(default="")
    # Use True for sandbox/test API, False for production API
    AMADEUS_USE_TEST_API: bool = Field(default=True)
    AMADEUS_REQUEST_TIMEOUT: float = Field(default=30.0)
    # Tokens are treated as expired this many seconds before the real expiry
    AMADEUS_TOKEN_EXPIRY_MARGIN: int = Field(default=300)
    # How many times a request is replayed after a 401 with a fresh token
    AMADEUS_AUTH_RETRIES: int = Field(default=1, ge=0)
    AMADEUS_MAX_RESULTS: int = Field(default=50, ge=1, le=250)

    @computed_field
    @property
    def AMADEUS_BASE_URL(self) -> str:
        """Get Amadeus API base URL based on environment"""
        if self.AMADEUS_USE_TEST_API:
            return "https://test.api.amadeus.com/v2"
        return "https://api.amadeus.com/v2"

    # Price trend gap-fill throttle
    PRICE_TREND_BATCH_SIZE: int = Field(default=5)
    PRICE_TREND_BATCH_DELAY: float = Field(default=0.2)  # seconds
    PRICE_TREND_TRAILING_DAYS: int = Field(default=5, ge=0)

    # Results pagination
    RESULTS_PAGE_SIZE: int = Field(default=10, ge=1)

    @field_validator("PRICE_TREND_BATCH_SIZE")
    @classmethod
    def _batch_size_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("PRICE_TREND_BATCH_SIZE must be greater than 0")
        return v

    @field_validator("PRICE_TREND_BATCH_DELAY")
    @classmethod
    def _batch_delay_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("PRICE_TREND_BATCH_DELAY must not be negative")
        return v

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance
    """
    return Settings()


# Global settings instance
settings = get_settings()
