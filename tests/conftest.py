"""Shared fixtures and helpers for the epinet test suite."""

from typing import Dict, Sequence

import numpy as np
import pytest

from epinet.core import (
    DiseaseState,
    Network,
    NetworkGenerator,
    SimulationParameters,
)


def make_network(adjacency: Sequence[Sequence[int]],
                 states: Dict[int, DiseaseState] = None,
                 day: int = 0) -> Network:
    """Hand-built network; listed individuals get `state` with timestamps at `day`."""
    network = Network.from_adjacency(adjacency)
    updates = {}
    for i, state in (states or {}).items():
        person = network[i]
        if state == DiseaseState.EXPOSED:
            person = person.expose(day)
        elif state == DiseaseState.INFECTIOUS:
            person = person.become_infectious(day)
        elif state == DiseaseState.RECOVERED:
            person = person.recover(day)
        elif state == DiseaseState.DEAD:
            person = person.die(day)
        updates[i] = person
    return network.with_updates(updates)


@pytest.fixture
def rng():
    return np.random.default_rng(12345)


@pytest.fixture
def scenario_params():
    """Parameters of the reference 100-person scenario."""
    return SimulationParameters(
        reproduction_number=3.0,
        incubation_duration=5,
        infectious_duration=10,
        recovery_probability=0.97,
        vaccination_fraction=0.0,
        contact_reduction=0.0,
    )


@pytest.fixture
def scenario_network(rng):
    return NetworkGenerator(rng=rng).generate(
        population_size=100,
        seed_network_size=5,
        attachments_per_node=3,
        initially_infected=5,
    )
