"""
Central configuration for custodynet.

A single typed settings object read from environment variables
(12-factor style) using pydantic BaseSettings.

Usage:

    from custodynet.core.settings import get_settings, build_system

    settings = get_settings()
    system = build_system(owner="0xowner", settings=settings)
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Callable, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from custodynet.events.log import EventLog
from custodynet.events.signing import Ed25519EventSigner
from custodynet.utils.logging import configure_logging

from .access import MemberRegistry
from .directory import DepositAddressDirectory
from .ledger import InMemoryLedger
from .registry import RequestRegistry


class CustodySettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="CUSTODYNET_")

    log_level: str = Field(
        default="INFO",
        description="Log level for the custodynet logger (DEBUG/INFO/WARNING/ERROR).",
    )
    event_log_path: Optional[str] = Field(
        default=None,
        description="JSONL file mirroring the audit log. In-memory only when unset.",
    )
    event_log_sync: bool = Field(
        default=True,
        description="fsync every audit log write (disable only for testing).",
    )
    require_signing: bool = Field(
        default=False,
        description="Refuse to start without an Ed25519 signing key.",
    )
    signing_key_file: Optional[str] = Field(
        default=None,
        description="PEM-encoded Ed25519 private key used to sign audit events.",
    )
    token_name: str = Field(default="Wrapped BTC")
    token_symbol: str = Field(default="WBTC")
    token_decimals: int = Field(default=8, ge=0, le=18)

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        v = (v or "INFO").upper()
        if v == "WARN":
            return "WARNING"
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level: {v}")
        return v


@lru_cache(maxsize=1)
def get_settings() -> CustodySettings:
    """
    Cached accessor for CustodySettings.
    """
    return CustodySettings()


@dataclass
class CustodySystem:
    """Wired collaborators for one deployment."""

    members: MemberRegistry
    ledger: InMemoryLedger
    directory: DepositAddressDirectory
    registry: RequestRegistry
    event_log: EventLog


def build_system(
    owner: str,
    settings: Optional[CustodySettings] = None,
    *,
    clock: Optional[Callable[[], int]] = None,
) -> CustodySystem:
    """
    Construct members, ledger, directory, audit log and registry from settings.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    signer = None
    if settings.signing_key_file:
        signer = Ed25519EventSigner.from_pem_file(settings.signing_key_file)

    event_log = EventLog(
        settings.event_log_path,
        signer=signer,
        require_signing=settings.require_signing,
        sync=settings.event_log_sync,
    )
    members = MemberRegistry(owner, event_log=event_log)
    ledger = InMemoryLedger(
        owner,
        name=settings.token_name,
        symbol=settings.token_symbol,
        decimals=settings.token_decimals,
        event_log=event_log,
    )
    directory = DepositAddressDirectory(members, event_log=event_log)
    registry = RequestRegistry(members, ledger, directory, event_log=event_log, clock=clock)
    return CustodySystem(
        members=members,
        ledger=ledger,
        directory=directory,
        registry=registry,
        event_log=event_log,
    )
