"""
Configuration Loading
=====================
YAML run files layered over the built-in defaults

    simulation:
      max_days: 180
      seed: 7
    network:
      population_size: 500
      initially_infected: 5
    disease:
      reproduction_number: 3.0
      contact_reduction: 0.4
"""

from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .disease_params import NetworkConfig, SimulationConfig, SimulationParameters
from .errors import ParameterError


@dataclass(frozen=True)
class RunConfig:
    """Everything needed to start and drive one run"""
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    disease: SimulationParameters = field(default_factory=SimulationParameters)

    def validate(self) -> 'RunConfig':
        self.simulation.validate()
        self.network.validate()
        self.disease.validate()
        return self

    def to_dict(self) -> Dict[str, Dict[str, Any]]:
        return asdict(self)


_SECTIONS = {
    'simulation': SimulationConfig,
    'network': NetworkConfig,
    'disease': SimulationParameters,
}


def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into a copy of base"""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _dict_to_section(section_name: str, data: Dict) -> Any:
    section_cls = _SECTIONS[section_name]
    known = {f.name for f in fields(section_cls)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ParameterError(f"{section_name}.{unknown[0]}", data[unknown[0]], "a known setting")
    return section_cls(**data)


def config_from_dict(data: Optional[Dict]) -> RunConfig:
    """Build and validate a RunConfig from nested dicts over the defaults"""
    data = data or {}
    unknown = sorted(set(data) - set(_SECTIONS))
    if unknown:
        raise ParameterError(unknown[0], data[unknown[0]], f"one of {sorted(_SECTIONS)}")

    for name, section in data.items():
        if section is not None and not isinstance(section, dict):
            raise ParameterError(name, section, "a mapping of settings")

    sections = {name: section for name, section in data.items() if section is not None}
    merged = deep_merge(RunConfig().to_dict(), sections)
    config = RunConfig(**{
        name: _dict_to_section(name, merged[name])
        for name in _SECTIONS
    })
    return config.validate()


def load_config(path: Union[str, Path], overrides: Optional[Dict] = None) -> RunConfig:
    """
    Load a YAML run file

    Args:
        path: YAML file with optional simulation/network/disease sections
        overrides: Nested dict applied on top of the file (e.g. sweeps)

    Raises:
        ParameterError: Unknown keys or out-of-domain values
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if overrides:
        data = deep_merge(data, overrides)
    return config_from_dict(data)


def default_config() -> RunConfig:
    return RunConfig()
