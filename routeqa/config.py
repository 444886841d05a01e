"""Configuration management with Pydantic validation."""

import tomllib
from collections.abc import Mapping
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

TRUTHY = ("1", "true", "yes")


class TargetConfig(BaseModel):
    """Where the map under test lives."""

    base_url: str = Field(default="https://maps.openrouteservice.org")
    map_path: str = Field(default="/")
    tile_url_fragment: str = Field(default="tile.openstreetmap.org")


class TimeoutConfig(BaseModel):
    """Per-operation timeouts in milliseconds."""

    navigation: int = Field(default=30000, gt=0)
    tile_wait: int = Field(default=15000, gt=0)
    network_capture: int = Field(default=15000, gt=0)
    overlay_check: int = Field(default=2000, gt=0)
    action: int = Field(default=15000, gt=0)


class InteractionConfig(BaseModel):
    """Pointer gestures on the map surface."""

    start_point: tuple[float, float] = Field(default=(0.35, 0.5))
    end_point: tuple[float, float] = Field(default=(0.65, 0.5))
    start_settle_ms: int = Field(default=1000, ge=0)
    end_settle_ms: int = Field(default=500, ge=0)
    overlay_settle_ms: int = Field(default=500, ge=0)
    poll_interval_ms: int = Field(default=100, gt=0)
    capture_url_fragments: list[str] = Field(default=["directions", "reverse", "pgeocode"])
    dismiss_selectors: list[str] = Field(
        default=[
            'button:has-text("Accept")',
            'button:has-text("Got it")',
            '[aria-label*="Close"]',
            ".modal-close",
        ]
    )

    @field_validator("start_point", "end_point")
    @classmethod
    def validate_fraction(cls, v: tuple[float, float]) -> tuple[float, float]:
        """Ensure points are strictly inside the viewport."""
        if not all(0 < f < 1 for f in v):
            raise ValueError("Viewport fractions must be between 0 and 1 (exclusive)")
        return v

    @field_validator("capture_url_fragments")
    @classmethod
    def validate_fragments(cls, v: list[str]) -> list[str]:
        """Require at least one URL fragment to match against."""
        if not v or not all(v):
            raise ValueError("At least one non-empty capture URL fragment is required")
        return v

    @model_validator(mode="after")
    def validate_distinct_points(self) -> "InteractionConfig":
        """Start and end gestures must land on different pixels."""
        if self.start_point == self.end_point:
            raise ValueError("Start and end points must differ")
        return self


class DemoConfig(BaseModel):
    """Placeholder readouts used when an address response is captured."""

    fallback_enabled: bool = Field(default=False)
    placeholder_distance: float = Field(default=1500.0, gt=0)
    placeholder_duration: float = Field(default=300.0, gt=0)


class ApiConfig(BaseModel):
    """Direct routing API access."""

    base_url: str = Field(default="https://api.openrouteservice.org")
    api_key: str | None = Field(default=None)
    timeout_s: float = Field(default=30.0, gt=0)
    default_profile: str = Field(default="driving-car")


class EdgeCaseConfig(BaseModel):
    """Thresholds for degenerate gestures."""

    same_point_max_distance: float = Field(default=1000.0, gt=0)


class Config(BaseModel):
    """Main configuration."""

    target: TargetConfig = Field(default_factory=TargetConfig)
    timeouts: TimeoutConfig = Field(default_factory=TimeoutConfig)
    interaction: InteractionConfig = Field(default_factory=InteractionConfig)
    demo: DemoConfig = Field(default_factory=DemoConfig)
    api: ApiConfig = Field(default_factory=ApiConfig)
    edge_case: EdgeCaseConfig = Field(default_factory=EdgeCaseConfig)

    @classmethod
    def from_file(cls, path: Path | str) -> "Config":
        """Load configuration from TOML file.

        Args:
            path: Path to config.toml file

        Returns:
            Validated Config object

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config validation fails
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config not found: {path}")

        with open(path, "rb") as f:
            data = tomllib.load(f)

        return cls(**data)


def apply_env_overrides(config: Config, environ: Mapping[str, str]) -> Config:
    """Return a copy of config with environment overrides applied.

    Recognised variables:
    - ROUTEQA_DEMO_MODE: enable placeholder readouts for address responses
    - ROUTEQA_BASE_URL: map application base URL
    - ROUTEQA_API_URL: routing API base URL
    - ORS_API_KEY: routing API key

    Args:
        config: Base configuration
        environ: Environment mapping (usually os.environ)

    Returns:
        New Config object; the input is not modified
    """
    config = config.model_copy(deep=True)

    if "ROUTEQA_DEMO_MODE" in environ:
        config.demo.fallback_enabled = environ["ROUTEQA_DEMO_MODE"].strip().lower() in TRUTHY
    if environ.get("ROUTEQA_BASE_URL"):
        config.target.base_url = environ["ROUTEQA_BASE_URL"]
    if environ.get("ROUTEQA_API_URL"):
        config.api.base_url = environ["ROUTEQA_API_URL"]
    if environ.get("ORS_API_KEY"):
        config.api.api_key = environ["ORS_API_KEY"]

    return config
