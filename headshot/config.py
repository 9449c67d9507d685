import logging
from pathlib import Path
from typing import List

from pydantic import (
    Field,
    model_validator,
)
from pydantic_settings import (
    BaseSettings,
    SettingsConfigDict,
)

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="HEADSHOT_",
        env_file=".env",
        extra="ignore",
    )

    HOST: str = Field("0.0.0.0")
    PORT: int = Field(3002)
    LOG_LEVEL: str = Field("INFO")
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["*"])

    MODELS_DIR: Path = Field(Path("models"))
    DETECTOR_BACKEND: str = Field("ssd")
    CONFIDENCE_THRESHOLD: float = Field(0.7, ge=0.0, le=1.0)

    VALID_SIZES: List[int] = Field(default_factory=lambda: [500, 1000])
    DEFAULT_SIZE: int = Field(500)
    TOP_PADDING_PX: int = Field(20, ge=0)

    @model_validator(mode='after')
    def check_sizes(self) -> 'Settings':
        if self.DEFAULT_SIZE not in self.VALID_SIZES:
            raise ValueError(
                f"DEFAULT_SIZE {self.DEFAULT_SIZE} must be one of VALID_SIZES {self.VALID_SIZES}.",
            )
        if self.DETECTOR_BACKEND.lower() not in ("ssd", "hog"):
            raise ValueError(
                f"DETECTOR_BACKEND must be 'ssd' or 'hog', got {self.DETECTOR_BACKEND!r}.",
            )
        return self

    def get_log_level(self) -> int:
        return getattr(logging, self.LOG_LEVEL.upper(), logging.INFO)


settings = Settings()
