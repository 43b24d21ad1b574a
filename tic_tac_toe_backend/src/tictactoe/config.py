"""Runtime settings read from TICTACTOE_* environment variables, and logging setup."""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Literal, Mapping, Optional

from pydantic import BaseModel, Field, field_validator

from .ai import AITier
from .models import GameMode
from .store import JsonFileStore, MemoryStore, Store

ENV_PREFIX = "TICTACTOE_"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"

_FALSY = {"", "0", "false", "False", "no", "off"}


# PUBLIC_INTERFACE
class EngineConfig(BaseModel):
    """Engine settings. Invalid values fail validation at startup."""
    data_dir: Path = Field(Path("data"), description="Directory for the JSON store.")
    safe_mode: bool = Field(False, description="Keep everything in memory; write nothing to disk.")
    ai_delay: float = Field(0.75, ge=0, description="Seconds before the AI plays. 0 plays immediately.")
    mode: GameMode = Field(GameMode.VS_AI, description="Game mode for new sessions.")
    ai_tier: AITier = Field(AITier.HEURISTIC, description="AI tier for new sessions.")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        "INFO", description="Log level for the tictactoe logger; case-insensitive."
    )
    log_file: Optional[Path] = Field(None, description="Optional rotating log file.")
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, value):
        return value.upper() if isinstance(value, str) else value

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "EngineConfig":
        env = os.environ if environ is None else environ
        values = {}
        for field in ("data_dir", "ai_delay", "mode", "log_level", "log_file"):
            raw = env.get(ENV_PREFIX + field.upper())
            if raw:
                values[field] = raw
        if env.get(ENV_PREFIX + "AI_TIER"):
            values["ai_tier"] = env[ENV_PREFIX + "AI_TIER"]
        if ENV_PREFIX + "SAFE_MODE" in env:
            values["safe_mode"] = env[ENV_PREFIX + "SAFE_MODE"] not in _FALSY
        if env.get(ENV_PREFIX + "CORS_ORIGINS"):
            values["cors_origins"] = [o.strip() for o in env[ENV_PREFIX + "CORS_ORIGINS"].split(",") if o.strip()]
        return cls.model_validate(values)

    def build_store(self) -> Store:
        if self.safe_mode:
            return MemoryStore()
        return JsonFileStore(self.data_dir)


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """Attach handlers to the package logger, replacing any from an earlier call."""
    logger = logging.getLogger("tictactoe")
    logger.setLevel(level.upper())
    for h in list(logger.handlers):
        logger.removeHandler(h)
        h.close()
    fmt = logging.Formatter(LOG_FORMAT)
    stream = logging.StreamHandler()
    stream.setFormatter(fmt)
    logger.addHandler(stream)
    if log_file is not None:
        try:
            Path(log_file).parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(log_file, maxBytes=200_000, backupCount=3, encoding="utf-8", delay=True)
            handler.setFormatter(fmt)
            logger.addHandler(handler)
        except OSError as exc:
            logger.warning("Could not open log file %s (%s)", log_file, exc)
    return logger
