"""
Configuration management for polygon matching runs.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional
import yaml

from .matcher import DEFAULT_TOLERANCE
from .polygon import DEFAULT_CARDINALITY


@dataclass
class PolygonConfig:
    """Polygon building configuration."""

    cardinality: int = DEFAULT_CARDINALITY  # Vertices per polygon

    def __post_init__(self):
        if self.cardinality < 2:
            raise ValueError(f"cardinality must be at least 2, got {self.cardinality}")


@dataclass
class MatchingConfig:
    """Signature matching configuration."""

    tolerance: float = DEFAULT_TOLERANCE  # Minimum per-edge min/max ratio

    def __post_init__(self):
        if not 0.0 < self.tolerance <= 1.0:
            raise ValueError(f"tolerance must be in (0, 1], got {self.tolerance}")


@dataclass
class CatalogConfig:
    """Reference catalog selection."""

    path: Optional[Path] = None
    format: Literal["auto", "hyg", "gaia"] = "auto"
    ra_center_hours: float = 0.0
    dec_center_deg: float = 0.0
    radius_deg: float = 5.0
    magnitude_limit: float = 10.0
    max_stars: Optional[int] = None


@dataclass
class ImageConfig:
    """Detected image stars and plate scale."""

    path: Optional[Path] = None
    width: int = 0
    height: int = 0
    scale_arcsec_per_pixel: float = 1.0
    max_stars: Optional[int] = None


@dataclass
class OutputConfig:
    """Output configuration."""

    output_path: Optional[Path] = None  # JSON report, skipped if unset
    max_reported: int = 50  # Matches printed by the CLI


@dataclass
class Config:
    """Main configuration container."""

    polygon: PolygonConfig = field(default_factory=PolygonConfig)
    matching: MatchingConfig = field(default_factory=MatchingConfig)
    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    image: ImageConfig = field(default_factory=ImageConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    verbose: bool = False

    @classmethod
    def from_yaml(cls, path: Path) -> "Config":
        """Load configuration from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls._from_dict(data or {})

    @classmethod
    def _from_dict(cls, data: dict) -> "Config":
        """Create Config from dictionary."""
        config = cls()

        if "polygon" in data:
            config.polygon = PolygonConfig(**data["polygon"])
        if "matching" in data:
            config.matching = MatchingConfig(**data["matching"])
        if "catalog" in data:
            cat_data = dict(data["catalog"])
            if cat_data.get("path") is not None:
                cat_data["path"] = Path(cat_data["path"])
            config.catalog = CatalogConfig(**cat_data)
        if "image" in data:
            img_data = dict(data["image"])
            if img_data.get("path") is not None:
                img_data["path"] = Path(img_data["path"])
            config.image = ImageConfig(**img_data)
        if "output" in data:
            out_data = dict(data["output"])
            if out_data.get("output_path") is not None:
                out_data["output_path"] = Path(out_data["output_path"])
            config.output = OutputConfig(**out_data)

        config.verbose = data.get("verbose", False)

        return config

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file."""
        import dataclasses

        def convert(obj):
            if dataclasses.is_dataclass(obj):
                return convert(dataclasses.asdict(obj))
            elif isinstance(obj, dict):
                return {k: convert(v) for k, v in obj.items()}
            elif isinstance(obj, Path):
                return str(obj)
            return obj

        data = convert(self)
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
