"""
Configuration models for the GoBGP exporter.

Settings come from model defaults, an optional YAML file, then command-line
flags (highest precedence). Table types and address families are validated
against the static catalog, so an unknown name fails at startup.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from gobgp_exporter.collectors.families import (
    SUPPORTED_TABLE_TYPES,
    AddressFamily,
    FamilyName,
    TableType,
    get_family,
)

LOG_LEVELS = ("debug", "info", "warning", "error")


class TLSSettings(BaseModel):
    enabled: bool = False
    ca_path: Optional[str] = None
    server_name: Optional[str] = None
    client_cert_path: Optional[str] = None
    client_key_path: Optional[str] = None

    @model_validator(mode="after")
    def _client_pair(self) -> "TLSSettings":
        if bool(self.client_cert_path) != bool(self.client_key_path):
            raise ValueError("only one of client certificate and key was set, must set both")
        return self


class ExporterSettings(BaseModel):
    listen_address: str = ":9474"
    metrics_path: str = "/metrics"
    server_address: str = "127.0.0.1:50051"
    timeout: float = Field(default=2, gt=0)          # seconds, per gRPC call
    poll_interval: float = Field(default=15, ge=0)   # seconds between collections
    auth_token: str = "anonymous"
    log_level: str = "info"
    table_types: list[str] = Field(default_factory=lambda: [t.label for t in SUPPORTED_TABLE_TYPES])
    address_families: list[str] = Field(default_factory=lambda: [f.value for f in FamilyName])
    tls: TLSSettings = Field(default_factory=TLSSettings)

    @field_validator("listen_address")
    @classmethod
    def _listen_port(cls, v: str) -> str:
        _, sep, port = v.rpartition(":")
        if not sep or not port.isdigit() or not 0 < int(port) <= 65535:
            raise ValueError(f"invalid listen address {v!r}, expected [host]:port")
        return v

    @field_validator("metrics_path")
    @classmethod
    def _absolute_path(cls, v: str) -> str:
        if not v.startswith("/"):
            raise ValueError("metrics path must start with '/'")
        return v

    @field_validator("auth_token")
    @classmethod
    def _non_empty_token(cls, v: str) -> str:
        if not v:
            raise ValueError("auth token must not be empty, use 'anonymous' to disable authentication")
        return v

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, v: str) -> str:
        v = v.lower()
        if v not in LOG_LEVELS:
            raise ValueError(f"log level must be one of {', '.join(LOG_LEVELS)}")
        return v

    @field_validator("table_types")
    @classmethod
    def _supported_tables(cls, v: list[str]) -> list[str]:
        supported = {t.label for t in SUPPORTED_TABLE_TYPES}
        for name in v:
            if name.lower() not in supported:
                raise ValueError(f"unsupported route table type: {name}")
        return [name.lower() for name in v]

    @field_validator("address_families")
    @classmethod
    def _known_families(cls, v: list[str]) -> list[str]:
        return [get_family(name).name for name in v]

    @property
    def listen_host(self) -> str:
        host = self.listen_address.rpartition(":")[0].strip("[]")
        return host or "0.0.0.0"

    @property
    def listen_port(self) -> int:
        return int(self.listen_address.rpartition(":")[2])

    def enabled_table_types(self) -> list[TableType]:
        return [TableType[name.upper()] for name in self.table_types]

    def enabled_families(self) -> list[AddressFamily]:
        return [get_family(name) for name in self.address_families]

    @classmethod
    def from_yaml(cls, path: str | Path, **overrides: Any) -> "ExporterSettings":
        """Load settings from a YAML mapping; `overrides` win over file values."""
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping at the top level")
        tls_overrides = overrides.pop("tls", None)
        data.update(overrides)
        if tls_overrides:
            data["tls"] = {**(data.get("tls") or {}), **tls_overrides}
        return cls.model_validate(data)
