"""Configuration system for dashstore."""

from dataclasses import dataclass, field, fields, is_dataclass, replace
from pathlib import Path

import tomlkit

DEFAULT_RETENTION = 600.0  # 10 minutes
DEFAULT_MAX_POINTS = 600  # 10 minutes at 1 sample/sec
DEFAULT_PRUNE_INTERVAL = 30.0


@dataclass
class StoreConfig:
    """Time-series store configuration.

    Zero means "use the default" for every field, so StoreConfig(max_points=0)
    behaves like StoreConfig(). Negative values are rejected.
    """

    default_retention: float = DEFAULT_RETENTION  # Seconds a sample is kept before pruning
    max_points: int = DEFAULT_MAX_POINTS  # Upper bound on samples per series
    prune_interval: float = DEFAULT_PRUNE_INTERVAL  # Seconds between prune calls (informational)

    def __post_init__(self) -> None:
        for name in ("default_retention", "max_points", "prune_interval"):
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")

    def resolved(self) -> "StoreConfig":
        """Return a copy with zero fields replaced by their defaults."""
        return replace(
            self,
            default_retention=self.default_retention or DEFAULT_RETENTION,
            max_points=self.max_points or DEFAULT_MAX_POINTS,
            prune_interval=self.prune_interval or DEFAULT_PRUNE_INTERVAL,
        )


@dataclass
class SystemConfig:
    """Sampling and logging configuration."""

    sample_interval: float = 1.0  # Seconds between collector samples
    # Log file rotation
    log_max_bytes: int = 5 * 1024 * 1024  # Max log file size (5MB)
    log_backup_count: int = 3  # Number of backup log files to keep


@dataclass
class DisplayConfig:
    """Configuration for the watch dashboard."""

    sparkline_width: int = 40  # Characters per sparkline
    window: float = 60.0  # Seconds of history shown per sparkline


def _dataclass_to_table(obj: object) -> tomlkit.items.Table:
    """Convert a dataclass instance to a tomlkit Table recursively."""
    table = tomlkit.table()
    for f in fields(obj):  # type: ignore[arg-type]
        value = getattr(obj, f.name)
        if is_dataclass(value) and not isinstance(value, type):
            table.add(f.name, _dataclass_to_table(value))
        else:
            table.add(f.name, value)
    return table


@dataclass
class Config:
    """Main configuration container."""

    store: StoreConfig = field(default_factory=StoreConfig)
    system: SystemConfig = field(default_factory=SystemConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)

    @property
    def config_dir(self) -> Path:
        """Configuration directory."""
        return Path.home() / ".config" / "dashstore"

    @property
    def config_path(self) -> Path:
        """Path to config file."""
        return self.config_dir / "config.toml"

    @property
    def state_dir(self) -> Path:
        """State directory for logs."""
        return Path.home() / ".local" / "state" / "dashstore"

    @property
    def log_path(self) -> Path:
        """Log path.

        Logs are expendable persistent state, so they go in XDG_STATE_HOME.
        """
        return self.state_dir / "dashstore.log"

    def to_toml(self) -> str:
        """Render config as a TOML document."""
        doc = tomlkit.document()
        for name in ("store", "system", "display"):
            doc.add(name, _dataclass_to_table(getattr(self, name)))
            doc.add(tomlkit.nl())
        return tomlkit.dumps(doc)

    def save(self, path: Path | None = None) -> None:
        """Save config to TOML file."""
        path = path or self.config_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_toml())

    @classmethod
    def load(cls, path: Path | None = None) -> "Config":
        """Load config from TOML file, returning defaults for missing values.

        All defaults come from the dataclass definitions, so Config() and
        Config.load() of an empty file are identical.
        """
        defaults = cls()
        path = path or defaults.config_path
        if not path.exists():
            return defaults

        try:
            with open(path) as f:
                data = tomlkit.load(f)
        except tomlkit.exceptions.TOMLKitError as e:
            raise ValueError(f"Failed to parse config file {path}: {e}") from e

        return cls(
            store=_load_store_config(data.get("store", {})),
            system=_load_system_config(data.get("system", {})),
            display=_load_display_config(data.get("display", {})),
        )


def _number(data: dict, key: str, default: float, kind: type) -> float:
    """Read a numeric field, raising ValueError naming the key on bad input.

    Only TOML integers and floats are accepted. Booleans are rejected even
    though bool is an int subclass. Integer fields also accept integral
    floats such as 30.0.
    """
    value = data.get(key, default)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number, got {value!r}")
    if kind is int:
        if isinstance(value, float) and not value.is_integer():
            raise ValueError(f"{key} must be an integer, got {value}")
        return int(value)
    return float(value)


def _load_store_config(data: dict) -> StoreConfig:
    """Load store config from TOML data, using dataclass defaults for missing fields."""
    d = StoreConfig()
    # StoreConfig.__post_init__ rejects negative values
    return StoreConfig(
        default_retention=_number(data, "default_retention", d.default_retention, float),
        max_points=_number(data, "max_points", d.max_points, int),
        prune_interval=_number(data, "prune_interval", d.prune_interval, float),
    )


def _load_system_config(data: dict) -> SystemConfig:
    """Load system config from TOML data."""
    d = SystemConfig()
    sample_interval = _number(data, "sample_interval", d.sample_interval, float)
    if sample_interval <= 0:
        raise ValueError(f"sample_interval must be > 0, got {sample_interval}")
    log_max_bytes = _number(data, "log_max_bytes", d.log_max_bytes, int)
    if log_max_bytes <= 0:
        raise ValueError(f"log_max_bytes must be > 0, got {log_max_bytes}")
    log_backup_count = _number(data, "log_backup_count", d.log_backup_count, int)
    if log_backup_count < 0:
        raise ValueError(f"log_backup_count must be >= 0, got {log_backup_count}")

    return SystemConfig(
        sample_interval=sample_interval,
        log_max_bytes=log_max_bytes,
        log_backup_count=log_backup_count,
    )


def _load_display_config(data: dict) -> DisplayConfig:
    """Load display config from TOML data."""
    d = DisplayConfig()
    sparkline_width = _number(data, "sparkline_width", d.sparkline_width, int)
    if sparkline_width < 1:
        raise ValueError(f"sparkline_width must be >= 1, got {sparkline_width}")
    window = _number(data, "window", d.window, float)
    if window <= 0:
        raise ValueError(f"window must be > 0, got {window}")

    return DisplayConfig(sparkline_width=sparkline_width, window=window)
