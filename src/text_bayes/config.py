"""Runtime settings with environment overrides.

Values come from ``TEXT_BAYES_*`` environment variables, optionally loaded
from a ``.env`` file, and fall back to the defaults below.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Optional

from dotenv import find_dotenv, load_dotenv

ENV_PREFIX = "TEXT_BAYES_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{ENV_PREFIX}{name} must be a boolean, got {raw!r}")


def _env_number(name: str, default, cast):
    raw = os.environ.get(ENV_PREFIX + name)
    if raw is None:
        return default
    try:
        return cast(raw)
    except ValueError as e:
        raise ValueError(f"{ENV_PREFIX}{name} must be {cast.__name__}, got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    """Defaults for training, evaluation and logging.

    Cross-validation defaults to 10 folds with seed 1.
    """

    alpha: float = 1.0
    folds: int = 10
    seed: int = 1
    workers: int = 1
    use_stopwords: bool = False
    min_count: int = 1
    log_level: str = "WARNING"

    def __post_init__(self) -> None:
        if not self.alpha > 0:
            raise ValueError(f"alpha must be positive, got {self.alpha}")
        if self.folds < 2:
            raise ValueError(f"folds must be >= 2, got {self.folds}")
        if self.workers < 1:
            raise ValueError(f"workers must be >= 1, got {self.workers}")
        if self.min_count < 1:
            raise ValueError(f"min_count must be >= 1, got {self.min_count}")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"Unknown log level {self.log_level!r}")

    @classmethod
    def from_env(cls, dotenv_path: Optional[str] = None) -> "Settings":
        """Build settings from the environment (and a ``.env`` file if present)."""
        load_dotenv(dotenv_path or find_dotenv(usecwd=True))
        return cls(
            alpha=_env_number("ALPHA", cls.alpha, float),
            folds=_env_number("FOLDS", cls.folds, int),
            seed=_env_number("SEED", cls.seed, int),
            workers=_env_number("WORKERS", cls.workers, int),
            use_stopwords=_env_bool("USE_STOPWORDS", cls.use_stopwords),
            min_count=_env_number("MIN_COUNT", cls.min_count, int),
            log_level=os.environ.get(ENV_PREFIX + "LOG_LEVEL", cls.log_level).upper(),
        )
