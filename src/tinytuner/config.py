"""
Tuner configuration.

Every numeric constant used by the pitch pipeline is exposed here as a
tunable parameter instead of being assumed by the individual stages.

Configuration sources (later sources override earlier ones):
------------------------------------------------------------
1. Built-in defaults (TunerConfig field defaults)
2. Config file: explicit path, else ./tinytuner.toml, else
   ~/.tinytuner/config.toml. Keys may sit at the top level or under a
   [tuner] table.
3. Environment: TINYTUNER_<FIELD> variables, e.g. TINYTUNER_FRAME_SIZE=2048

Example tinytuner.toml:

    [tuner]
    method = "yin"
    yin_threshold = 0.15
    max_frequency = 2000
"""

import os
import warnings
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Optional, Union

ENV_PREFIX = "TINYTUNER_"

METHODS = ("yin", "autocorrelation")
WINDOWS = ("hann", "none")


class ConfigError(ValueError):
    """Raised when a configuration value is missing, malformed or inconsistent."""
    pass


@dataclass(frozen=True)
class TunerConfig:
    """
    Tunable constants for the pitch pipeline.

    Attributes:
        sample_rate: Sample rate of the incoming PCM stream in Hz
        frame_size: Analysis frame length in samples
        min_frame_size: Frames shorter than this never produce an estimate
        keep_tail: Samples retained after the buffer is trimmed
        max_buffer: Buffer length above which trimming happens
        method: Period estimation strategy ("yin" or "autocorrelation")
        window: Window applied before estimation ("hann" or "none")
        yin_threshold: CMND threshold for accepting a YIN period
        silence_rms: Frames with RMS below this are treated as silence
        min_frequency: Lowest frequency mapped to a note (Hz)
        max_frequency: Highest frequency mapped to a note (Hz)
        autocorrelation_min_frequency: Lower search bound of the fallback (Hz)
        autocorrelation_max_frequency: Upper search bound of the fallback (Hz)
        autocorrelation_confidence: Minimum normalized correlation accepted
        history_size: Number of raw estimates kept for median smoothing
        octave_tolerance: Octave-correction tolerance (Hz)
        in_tune_cents: |deviation| at or below which a note is in tune
        unwrap_threshold: Indicator jump (cents) treated as octave aliasing
        reference_frequency: Frequency of A4 (Hz)
        animation_duration: Indicator animation length (seconds)
    """
    sample_rate: int = 44100
    frame_size: int = 4096
    min_frame_size: int = 2048
    keep_tail: int = 2048
    max_buffer: int = 8192
    method: str = "yin"
    window: str = "hann"
    yin_threshold: float = 0.1
    silence_rms: float = 0.01
    min_frequency: float = 20.0
    max_frequency: float = 4200.0
    autocorrelation_min_frequency: float = 60.0
    autocorrelation_max_frequency: float = 1000.0
    autocorrelation_confidence: float = 0.5
    history_size: int = 5
    octave_tolerance: float = 5.0
    in_tune_cents: float = 10.0
    unwrap_threshold: float = 600.0
    reference_frequency: float = 440.0
    animation_duration: float = 0.15

    def __post_init__(self):
        if self.sample_rate <= 0:
            raise ConfigError(f"sample_rate must be positive, got {self.sample_rate}")
        if self.min_frame_size < 2:
            raise ConfigError(f"min_frame_size must be at least 2, got {self.min_frame_size}")
        if self.frame_size < self.min_frame_size:
            raise ConfigError(
                f"frame_size ({self.frame_size}) is smaller than "
                f"min_frame_size ({self.min_frame_size}); no estimate could ever be made"
            )
        if not 0 <= self.keep_tail <= self.max_buffer:
            raise ConfigError(
                f"keep_tail must be between 0 and max_buffer ({self.max_buffer}), "
                f"got {self.keep_tail}"
            )
        if self.max_buffer < self.frame_size:
            raise ConfigError(
                f"max_buffer ({self.max_buffer}) must hold at least one frame ({self.frame_size})"
            )
        if self.method not in METHODS:
            raise ConfigError(f"Unknown method '{self.method}'. Available: {list(METHODS)}")
        if self.window not in WINDOWS:
            raise ConfigError(f"Unknown window '{self.window}'. Available: {list(WINDOWS)}")
        if not 0 < self.min_frequency < self.max_frequency:
            raise ConfigError(
                f"Need 0 < min_frequency < max_frequency, got "
                f"{self.min_frequency} and {self.max_frequency}"
            )
        if not 0 < self.autocorrelation_min_frequency < self.autocorrelation_max_frequency:
            raise ConfigError("Autocorrelation frequency bounds are inconsistent")
        if self.history_size < 1:
            raise ConfigError(f"history_size must be at least 1, got {self.history_size}")
        if self.reference_frequency <= 0:
            raise ConfigError("reference_frequency must be positive")
        for name in ("yin_threshold", "silence_rms", "octave_tolerance",
                     "in_tune_cents", "unwrap_threshold", "animation_duration"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must not be negative")

    def replace(self, **changes) -> "TunerConfig":
        """Return a copy with the given fields changed."""
        return replace(self, **changes)


_FIELD_TYPES = {f.name: f.type for f in fields(TunerConfig)}


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw config value to the type of the named field."""
    kind = _FIELD_TYPES[name]
    try:
        if kind is int and isinstance(value, str):
            return int(value.strip())
        if kind is int and isinstance(value, float):
            if not value.is_integer():
                raise ValueError(value)
            return int(value)
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Invalid value for {name}: {value!r}") from None


def _filter_known(values: Dict[str, Any], source: str) -> Dict[str, Any]:
    known = {}
    for key, value in values.items():
        if key not in _FIELD_TYPES:
            warnings.warn(f"Ignoring unknown tuner setting '{key}' in {source}")
            continue
        known[key] = _coerce(key, value)
    return known


def _find_config_file() -> Optional[Path]:
    """
    Locate a config file.

    Checks in order:
      1. ./tinytuner.toml (project-local config)
      2. ~/.tinytuner/config.toml (user config)
    """
    local_config = Path("tinytuner.toml")
    if local_config.exists():
        return local_config

    user_config = Path.home() / ".tinytuner" / "config.toml"
    if user_config.exists():
        return user_config

    return None


def _parse_toml(path: Path) -> Dict[str, Any]:
    """
    Read tuner settings from a TOML file.

    Uses tomllib (Python 3.11+) or the tomli package.
    """
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib

    try:
        with open(path, "rb") as f:
            config = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Malformed config file {path}: {e}") from e

    section = config.get("tuner", config)
    if not isinstance(section, dict):
        raise ConfigError(f"[tuner] in {path} must be a table")
    return {k: v for k, v in section.items() if not isinstance(v, dict)}


def _read_environment(environ=None) -> Dict[str, str]:
    environ = os.environ if environ is None else environ
    values = {}
    for key, value in environ.items():
        if key.startswith(ENV_PREFIX):
            values[key[len(ENV_PREFIX):].lower()] = value
    return values


def load_config(
    path: Optional[Union[str, Path]] = None,
    environ: Optional[Dict[str, str]] = None,
    **overrides
) -> TunerConfig:
    """
    Build a TunerConfig from defaults, a config file and the environment.

    Args:
        path: Explicit config file; must exist if given
        environ: Mapping used instead of os.environ (mainly for tests)
        **overrides: Field values applied last

    Returns:
        Validated TunerConfig

    Raises:
        ConfigError: If the file is missing or malformed, or a value is invalid
    """
    values: Dict[str, Any] = {}

    if path is not None:
        path = Path(path)
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")
        config_file = path
    else:
        config_file = _find_config_file()

    if config_file is not None:
        values.update(_filter_known(_parse_toml(config_file), str(config_file)))

    values.update(_filter_known(_read_environment(environ), "environment"))
    values.update(_filter_known(overrides, "overrides"))

    return TunerConfig(**values)
