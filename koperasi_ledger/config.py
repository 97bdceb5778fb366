"""Configuration management for koperasi-ledger."""

from dataclasses import dataclass, field
from pathlib import Path

from koperasi_ledger.exceptions import ConfigurationError
from koperasi_ledger.models.enums import Role


@dataclass
class SyncConfig:
    """Refresh loop configuration for one signed-in officer."""

    role: Role = Role.COLLECTOR
    user_id: str = ""
    refresh_interval_seconds: float = 30.0
    admin_fetch_for_collectors: bool = True

    def __post_init__(self) -> None:
        self.role = Role.parse(self.role)
        if self.refresh_interval_seconds <= 0:
            raise ConfigurationError(
                f"refresh_interval_seconds must be > 0, got {self.refresh_interval_seconds}"
            )

    @property
    def is_collector(self) -> bool:
        """True when the officer only sees the collector-scoped ledger."""
        return self.role == Role.COLLECTOR


@dataclass
class SynthesisConfig:
    """Mutation synthesis tuning."""

    default_collector: str = "Petugas"
    amount_ceiling: float = 1_000_000_000


@dataclass
class OutputConfig:
    """Output configuration."""

    json_output_dir: Path = field(default_factory=lambda: Path("output"))
    pretty_json: bool = False


@dataclass
class LedgerConfig:
    """Main configuration for koperasi-ledger."""

    sync: SyncConfig = field(default_factory=SyncConfig)
    synthesis: SynthesisConfig = field(default_factory=SynthesisConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    seed: int | None = None
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Create config from environment variables."""
        import os

        sync = SyncConfig(
            role=os.getenv("LEDGER_ROLE", Role.COLLECTOR.value),
            user_id=os.getenv("LEDGER_USER_ID", ""),
            refresh_interval_seconds=float(os.getenv("REFRESH_INTERVAL", "30")),
            admin_fetch_for_collectors=os.getenv("ADMIN_FETCH_FOR_COLLECTORS", "true").lower() == "true",
        )

        synthesis = SynthesisConfig(
            default_collector=os.getenv("DEFAULT_COLLECTOR_LABEL", "Petugas"),
        )

        output = OutputConfig(
            json_output_dir=Path(os.getenv("OUTPUT_DIR", "output")),
            pretty_json=os.getenv("PRETTY_JSON", "false").lower() == "true",
        )

        return cls(
            sync=sync,
            synthesis=synthesis,
            output=output,
            seed=int(os.getenv("SEED")) if os.getenv("SEED") else None,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )
