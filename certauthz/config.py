# certauthz/config.py
import os
from enum import Enum
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

from certauthz.errors import BothModesSpecified, NoModeSpecified

load_dotenv()


class AuthzMode(str, Enum):
    REGEX = "regex"
    DOMAINS = "domains"


# ───────────────────────────────────────────────
# Configuration model
# ───────────────────────────────────────────────
class MtlsConfig(BaseModel):
    """
    Allow-list for client certificate SANs.

    Exactly one of `regex` / `domains` must be set; see validate_config().
    """
    regex: str = ""
    domains: List[str] = Field(default_factory=list)

    @field_validator("regex", mode="before")
    @classmethod
    def _none_regex(cls, v):
        return "" if v is None else v

    @field_validator("domains", mode="before")
    @classmethod
    def _none_domains(cls, v):
        return [] if v is None else v


def create_config() -> MtlsConfig:
    return MtlsConfig()


def validate_config(config: MtlsConfig) -> AuthzMode:
    if config.regex and config.domains:
        raise BothModesSpecified()
    if not config.regex and not config.domains:
        raise NoModeSpecified()
    return AuthzMode.REGEX if config.regex else AuthzMode.DOMAINS


# ───────────────────────────────────────────────
# Environment
# ───────────────────────────────────────────────
def _parse_csv(env: Optional[str]) -> List[str]:
    # keeps order, domains are evaluated as written
    if not env:
        return []
    return [x.strip() for x in env.split(",") if x.strip()]


def config_from_env() -> MtlsConfig:
    return MtlsConfig(
        regex=os.getenv("MTLS_ALLOWED_REGEX", ""),
        domains=_parse_csv(os.getenv("MTLS_ALLOWED_DOMAINS")),
    )


MTLS_CERT_HEADER = os.getenv("MTLS_CERT_HEADER") or None
MTLS_VERIFY_HEADER = os.getenv("MTLS_VERIFY_HEADER", "X-SSL-Client-Verify")
MTLS_INSTANCE_NAME = os.getenv("MTLS_INSTANCE_NAME", "certauthz")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
