"""
Disease and Network Parameters
==============================
Parameter records for a run, with domain checks
"""

import math
import numbers
from dataclasses import dataclass, asdict
from typing import Dict, Optional

from .errors import ParameterError


def _is_finite_real(value) -> bool:
    return (isinstance(value, numbers.Real)
            and not isinstance(value, bool)
            and math.isfinite(value))


def _is_integral(value) -> bool:
    return _is_finite_real(value) and int(value) == value


def _check_probability(name: str, value: float):
    if not _is_finite_real(value) or not (0.0 <= value <= 1.0):
        raise ParameterError(name, value, "0 <= value <= 1")


def _check_positive_int(name: str, value: int):
    if not _is_integral(value) or value < 1:
        raise ParameterError(name, value, "integer >= 1")


@dataclass(frozen=True)
class SimulationParameters:
    """Core disease parameters for the SEIRD model"""

    # Transmission
    reproduction_number: float = 2.5  # Mean secondary infections per case
    contact_reduction: float = 0.0    # Distancing: 0 = normal contact, 1 = none

    # Disease progression timings (in days)
    incubation_duration: int = 5   # Exposed → Infectious
    infectious_duration: int = 14  # Infectious → Recovered/Dead

    # Outcome
    recovery_probability: float = 0.97  # Survives rather than dies

    # Pre-existing immunity, applied once before day 0
    vaccination_fraction: float = 0.0

    def validate(self) -> 'SimulationParameters':
        """Raise ParameterError on the first out-of-domain field"""
        r = self.reproduction_number
        if not _is_finite_real(r) or r < 0.0:
            raise ParameterError('reproduction_number', r, "finite value >= 0")
        _check_probability('recovery_probability', self.recovery_probability)
        _check_positive_int('incubation_duration', self.incubation_duration)
        _check_positive_int('infectious_duration', self.infectious_duration)
        _check_probability('vaccination_fraction', self.vaccination_fraction)
        _check_probability('contact_reduction', self.contact_reduction)
        return self

    @property
    def contact_probability(self) -> float:
        """Probability that an edge is actually used on a given day"""
        return 1.0 - self.contact_reduction

    @property
    def transmission_probability(self) -> float:
        """
        Per-contact-day transmission hazard
        Mean-field R0 spread evenly over the infectious period
        """
        return self.reproduction_number / self.infectious_duration

    @property
    def case_fatality(self) -> float:
        return 1.0 - self.recovery_probability

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


@dataclass(frozen=True)
class NetworkConfig:
    """Construction inputs for the contact network"""
    population_size: int = 200
    initially_infected: int = 10
    seed_network_size: int = 5     # Size of the initial complete graph (m0)
    attachments_per_node: int = 3  # Edges added per new individual (m)
    with_positions: bool = True    # Random layout coordinates for viewers

    def validate(self) -> 'NetworkConfig':
        """Raise ParameterError naming the violated bound"""
        _check_positive_int('seed_network_size', self.seed_network_size)
        if (not _is_integral(self.population_size)
                or self.population_size <= self.seed_network_size):
            raise ParameterError(
                'population_size', self.population_size,
                f"integer > seed_network_size ({self.seed_network_size})"
            )
        _check_positive_int('attachments_per_node', self.attachments_per_node)
        if (not _is_integral(self.initially_infected)
                or not 0 <= self.initially_infected <= self.population_size):
            raise ParameterError(
                'initially_infected', self.initially_infected,
                f"0 <= value <= population_size ({self.population_size})"
            )
        return self


@dataclass(frozen=True)
class SimulationConfig:
    """Configuration for the driving loop"""
    max_days: int = 365
    seed: Optional[int] = None

    def validate(self) -> 'SimulationConfig':
        _check_positive_int('max_days', self.max_days)
        if self.seed is not None and (not _is_integral(self.seed) or self.seed < 0):
            raise ParameterError('seed', self.seed, "None or integer >= 0")
        return self


# Default parameters instance
DEFAULT_PARAMS = SimulationParameters()


if __name__ == "__main__":
    params = SimulationParameters()

    print("Disease Parameters")
    print("=" * 50)
    for name, value in params.to_dict().items():
        print(f"  {name:22s}: {value}")
    print(f"\nContact probability:      {params.contact_probability:.3f}")
    print(f"Transmission probability: {params.transmission_probability:.3f}")
