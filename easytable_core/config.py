"""
EasyTable Configuration
=======================
Connection settings for the model API and the quota/auth service.
"""

import os
from dataclasses import dataclass, field


def _env_float(name: str, default: float) -> float:
    value = os.environ.get(name)
    return float(value) if value else default


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    return int(value) if value else default


@dataclass
class LLMConfig:
    """Configuration for the upstream model API."""
    base_url: str = field(default_factory=lambda: os.environ.get("EASYTABLE_LLM_BASE_URL", ""))
    api_key: str = field(default_factory=lambda: os.environ.get("EASYTABLE_LLM_API_KEY", ""))
    provider: str = field(default_factory=lambda: os.environ.get("EASYTABLE_LLM_PROVIDER", ""))
    model: str = field(default_factory=lambda: os.environ.get("EASYTABLE_LLM_MODEL", ""))
    timeout: float = field(default_factory=lambda: _env_float("EASYTABLE_LLM_TIMEOUT", 120.0))

    @property
    def completions_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"


@dataclass
class AuthServiceConfig:
    """Configuration for the quota/auth service."""
    url: str = field(default_factory=lambda: os.environ.get("EASYTABLE_AUTH_URL", ""))
    token: str = field(default_factory=lambda: os.environ.get("EASYTABLE_AUTH_TOKEN", ""))
    enc_key: str = field(default_factory=lambda: os.environ.get("EASYTABLE_AUTH_ENC_KEY", ""), repr=False)
    max_quota: int = field(default_factory=lambda: _env_int("EASYTABLE_AUTH_MAX_QUOTA", 0))
    timeout: float = field(default_factory=lambda: _env_float("EASYTABLE_AUTH_TIMEOUT", 10.0))

    @property
    def enabled(self) -> bool:
        """Quota gating is active only when the service and key are configured."""
        return bool(self.url and self.enc_key)
