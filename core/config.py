"""
Pydantic-based configuration for the IP allowlist gate.

All knobs are exposed via environment variables (or a .env file) so the
same codebase can run as API, CLI or embedded executor without code changes.
"""

import logging
from functools import lru_cache
from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(case_sensitive=False, env_file=".env")

    # Client attribute holding the comma-separated CIDR list
    allowed_ip_ranges_attr: str = Field("allowed.ip.ranges", description="client attribute name")

    # Client IP extraction
    trust_proxy_headers: bool = Field(True, description="honour X-Forwarded-For / X-Real-IP")
    forwarded_for_header: str = Field("X-Forwarded-For")
    real_ip_header: str = Field("X-Real-IP")

    # Off by default: range notation is IPv4-only unless explicitly enabled
    allow_ipv6_ranges: bool = Field(False)

    # Client registry: client_id -> "10.0.0.0/8,192.168.1.0/24"
    clients: Dict[str, str] = Field(default_factory=dict)

    log_level: str = Field("INFO")

    # Elasticsearch decision audit
    elasticsearch_url: Optional[str] = Field(None)
    elasticsearch_user: Optional[str] = Field(None)
    elasticsearch_pass: Optional[str] = Field(None)
    elasticsearch_api_key: Optional[str] = Field(None)
    elasticsearch_verify_certs: bool = Field(True)
    elasticsearch_ca_cert: Optional[str] = Field(None)
    audit_index: str = Field("ip-allowlist-decisions")
    audit_timeout_s: float = Field(2.0)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"unknown log level {v}")
        return level


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
