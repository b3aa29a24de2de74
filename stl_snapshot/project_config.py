"""
JSON-based project configuration for stl_snapshot.

Configuration hierarchy (later overrides earlier):
1. Built-in defaults (dataclasses below)
2. User config (~/.snapshot.json)
3. Project config (./.snapshot.json or next to the STL file)
4. Explicit config file path

Example .snapshot.json:
{
    "render": {"width": 1024, "height": 768, "fovy_deg": 45.0, "crop": true},
    "camera": {"theta_deg": 60.0, "phi_deg": 30.0, "strategy": "spherical"},
    "light": {"theta_deg": 0.0, "phi_deg": 0.0},
    "framing": {"include_y_axis": false, "z_up": true},
    "output": {"format": "png", "output_dir": "renders"}
}
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".snapshot.json"


@dataclass
class RenderConfig:
    """Output size, field of view and post-processing."""
    width: int = 1024
    height: int = 768
    fovy_deg: float = 45.0
    crop: bool = False
    crop_padding: int = 0
    light_color: List[float] = field(default_factory=lambda: [0.7, 0.7, 0.7])


@dataclass
class CameraConfig:
    """Camera placement."""
    theta_deg: float = 90.0
    phi_deg: float = 0.0
    strategy: str = "spherical"  # "spherical" or "axis_snapped"


@dataclass
class LightConfig:
    """Point light placement (spherical strategy)."""
    theta_deg: float = 0.0
    phi_deg: float = 0.0


@dataclass
class FramingConfig:
    """Mesh preparation and axis-snapped framing policy."""
    include_y_axis: bool = False
    z_up: bool = False  # rotate Z-up STL data into the renderer's Y-up frame
    normal_policy: str = "direct"  # "direct" or "inverse_transpose"


@dataclass
class OutputConfig:
    """Output file configuration."""
    format: str = "png"
    prefix: str = ""
    suffix: str = ""
    output_dir: str = ""

    def output_path(self, stl_path: Union[str, Path]) -> Path:
        """Image path derived from the STL file name."""
        stl_path = Path(stl_path)
        directory = Path(self.output_dir) if self.output_dir else stl_path.parent
        return directory / f"{self.prefix}{stl_path.stem}{self.suffix}.{self.format.lower()}"


_SECTIONS = ("render", "camera", "light", "framing", "output")


@dataclass
class ProjectConfig:
    """Complete project configuration."""
    render: RenderConfig = field(default_factory=RenderConfig)
    camera: CameraConfig = field(default_factory=CameraConfig)
    light: LightConfig = field(default_factory=LightConfig)
    framing: FramingConfig = field(default_factory=FramingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)

    def save(self, path: Union[str, Path]) -> None:
        path = Path(path)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(self.to_json())
        logger.info("Configuration saved to %s", path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ProjectConfig':
        """Create configuration from a dictionary; unknown keys are ignored."""
        config = cls()
        for section_name in _SECTIONS:
            section_data = data.get(section_name)
            if not isinstance(section_data, dict):
                continue
            section = getattr(config, section_name)
            for key, value in section_data.items():
                if hasattr(section, key) and not key.startswith('_'):
                    setattr(section, key, value)
        return config

    @classmethod
    def from_json(cls, json_str: str) -> 'ProjectConfig':
        return cls.from_dict(json.loads(json_str))

    @classmethod
    def load(cls, path: Union[str, Path]) -> 'ProjectConfig':
        """Load configuration from a JSON file.

        Raises:
            FileNotFoundError: If file doesn't exist
            json.JSONDecodeError: If file is not valid JSON
        """
        path = Path(path)
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        logger.info("Configuration loaded from %s", path)
        return cls.from_dict(data)


def find_config_file(
    stl_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> Optional[Path]:
    """Find a configuration file.

    Search order:
    1. Explicit config path (if provided and existing)
    2. .snapshot.json in the STL file's directory
    3. .snapshot.json in the current working directory
    4. ~/.snapshot.json
    """
    if explicit_config:
        explicit = Path(explicit_config)
        if explicit.exists():
            return explicit
        logger.warning("Explicit config not found: %s", explicit)

    candidates = []
    if stl_path:
        candidates.append(Path(stl_path).parent / CONFIG_FILENAME)
    candidates.append(Path.cwd() / CONFIG_FILENAME)
    candidates.append(Path.home() / CONFIG_FILENAME)

    for candidate in candidates:
        if candidate.exists():
            return candidate
    return None


def load_config(
    stl_path: Optional[Union[str, Path]] = None,
    explicit_config: Optional[Union[str, Path]] = None,
) -> ProjectConfig:
    """Load configuration, falling back to defaults when none is found or readable."""
    config_path = find_config_file(stl_path, explicit_config)

    if config_path:
        try:
            return ProjectConfig.load(config_path)
        except (json.JSONDecodeError, OSError) as e:
            logger.error("Failed to load config %s: %s", config_path, e)

    return ProjectConfig()


def merge_configs(base: ProjectConfig, override: ProjectConfig) -> ProjectConfig:
    """Merge two configurations; only non-default override values are applied."""
    merged = ProjectConfig.from_dict(base.to_dict())
    defaults = ProjectConfig()

    for section_name in _SECTIONS:
        override_section = getattr(override, section_name)
        default_section = getattr(defaults, section_name)
        merged_section = getattr(merged, section_name)
        for f in fields(override_section):
            value = getattr(override_section, f.name)
            if value != getattr(default_section, f.name):
                setattr(merged_section, f.name, value)

    return merged


def create_sample_config(path: Union[str, Path] = CONFIG_FILENAME) -> None:
    """Write a documented sample configuration file."""
    sample: Dict[str, Any] = {
        "_comment": "STL snapshot renderer configuration",
        "_version": "1.0",
    }
    for section_name, section in ProjectConfig().to_dict().items():
        sample[section_name] = section
    sample["render"]["_comment"] = "Output size in pixels, vertical FOV in degrees"
    sample["camera"]["_comment"] = "Polar angle from +Z, azimuth from +X; strategy spherical|axis_snapped"
    sample["framing"]["_comment"] = "z_up rotates Z-up STL data to Y-up before framing"

    path = Path(path)
    with open(path, 'w', encoding='utf-8') as f:
        json.dump(sample, f, indent=2, ensure_ascii=False)

    logger.info("Sample configuration created: %s", path)
