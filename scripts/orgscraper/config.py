"""Configuration for the organization scraper."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping

DEFAULT_QUERY       = "type:org"
DEFAULT_RESULT_PATH = "result.json"


@dataclass
class CrawlerConfig:
    """
    Everything the crawl needs from the outside world.
    Built once in main.py and never mutated afterwards.
    """

    token: str
    base_query: str = DEFAULT_QUERY
    result_path: Path = field(default_factory=lambda: Path(DEFAULT_RESULT_PATH))
    # Only for errors that are neither blocked resources nor exhausted quota
    retries: int = 1
    # GitHub caps search pages at 100
    per_page: int = 100
    api_url: str = "https://api.github.com"
    timeout: float = 30.0

    def __post_init__(self):
        """Coerce paths and reject values GitHub would refuse anyway."""
        if isinstance(self.result_path, str):
            self.result_path = Path(self.result_path)
        if not self.token:
            raise ValueError("a GitHub token is required")
        if self.retries < 0:
            raise ValueError(f"retries must be >= 0, got {self.retries}")
        if not 1 <= self.per_page <= 100:
            raise ValueError(f"per_page must be between 1 and 100, got {self.per_page}")

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None, **overrides) -> CrawlerConfig:
        """
        Build a config from GITHUB_TOKEN, SCRAPER_QUERY and SCRAPER_RESULT_PATH.
        Keyword overrides that are not None win over the environment.
        """
        env = os.environ if environ is None else environ
        values = {
            "token":       env.get("GITHUB_TOKEN", ""),
            "base_query":  env.get("SCRAPER_QUERY", DEFAULT_QUERY),
            "result_path": env.get("SCRAPER_RESULT_PATH", DEFAULT_RESULT_PATH),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
