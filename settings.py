"""Run-wide settings for the email harvester."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional


DEFAULT_API_URL = 'https://api.github.com'
DEFAULT_TIMEOUT = 10


@dataclass(frozen=True)
class HarvestConfig:
    """Immutable settings handed to the client and the coordinator."""

    token: Optional[str] = None
    verbose: bool = False
    timeout: float = DEFAULT_TIMEOUT
    api_url: str = DEFAULT_API_URL

    @classmethod
    def from_env(
            cls,
            token: Optional[str] = None,
            verbose: bool = False,
            timeout: float = DEFAULT_TIMEOUT,
    ) -> HarvestConfig:
        """Build settings, reading missing values from the environment."""
        if token is None:
            token = os.environ.get('GITHUB_TOKEN') or None
        api_url = os.environ.get('GITHUB_API_URL', DEFAULT_API_URL)
        return cls(
            token=token,
            verbose=verbose,
            timeout=timeout,
            api_url=api_url.rstrip('/'),
        )
