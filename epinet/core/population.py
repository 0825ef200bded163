"""
Population Management
=====================
Individuals and the contact network they live on
"""

import numpy as np
import networkx as nx
from dataclasses import dataclass, replace
from typing import Dict, FrozenSet, Iterator, List, Mapping, Optional, Sequence, Tuple
from enum import IntEnum

from .errors import InvariantViolation


class DiseaseState(IntEnum):
    """Enumeration of disease states"""
    SUSCEPTIBLE = 0
    EXPOSED = 1
    INFECTIOUS = 2
    RECOVERED = 3
    DEAD = 4

    @property
    def is_terminal(self) -> bool:
        return self in (DiseaseState.RECOVERED, DiseaseState.DEAD)

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class Individual:
    """Individual agent in the simulation"""
    id: int
    neighbors: FrozenSet[int] = frozenset()

    # Disease state
    state: DiseaseState = DiseaseState.SUSCEPTIBLE

    # Transition days, None until the transition happens
    exposure_day: Optional[int] = None
    infection_day: Optional[int] = None
    recovery_day: Optional[int] = None
    death_day: Optional[int] = None

    # Recovered through vaccination before day 0
    vaccinated: bool = False

    # Layout coordinate for viewers, unused by the engine
    position: Optional[Tuple[float, float, float]] = None

    @property
    def degree(self) -> int:
        return len(self.neighbors)

    def expose(self, day: int) -> 'Individual':
        return replace(self, state=DiseaseState.EXPOSED, exposure_day=day)

    def become_infectious(self, day: int) -> 'Individual':
        return replace(self, state=DiseaseState.INFECTIOUS, infection_day=day)

    def recover(self, day: int) -> 'Individual':
        return replace(self, state=DiseaseState.RECOVERED, recovery_day=day)

    def die(self, day: int) -> 'Individual':
        return replace(self, state=DiseaseState.DEAD, death_day=day)

    def vaccinate(self) -> 'Individual':
        return replace(self, state=DiseaseState.RECOVERED, vaccinated=True)

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'state': self.state.label,
            'neighbors': sorted(self.neighbors),
            'exposure_day': self.exposure_day,
            'infection_day': self.infection_day,
            'recovery_day': self.recovery_day,
            'death_day': self.death_day,
            'vaccinated': self.vaccinated,
            'position': self.position,
        }


class Network:
    """
    Contact network: individuals addressed by id, id == index

    A Network is a value. Day-to-day changes produce a new Network through
    `with_updates`; untouched individuals are shared between the two.
    """

    def __init__(self, individuals: Sequence[Individual]):
        self._individuals: Tuple[Individual, ...] = tuple(individuals)
        for index, person in enumerate(self._individuals):
            if person.id != index:
                raise InvariantViolation(
                    f"individual at index {index} has id {person.id}"
                )

    @classmethod
    def from_adjacency(cls,
                       adjacency: Sequence[Sequence[int]],
                       positions: Optional[np.ndarray] = None) -> 'Network':
        """Build an all-susceptible network from neighbor lists"""
        individuals = []
        for i, neighbors in enumerate(adjacency):
            position = None
            if positions is not None:
                position = tuple(float(c) for c in positions[i])
            individuals.append(Individual(id=i, neighbors=frozenset(neighbors), position=position))
        return cls(individuals)

    @property
    def size(self) -> int:
        return len(self._individuals)

    def __len__(self) -> int:
        return len(self._individuals)

    def __getitem__(self, individual_id: int) -> Individual:
        return self._individuals[individual_id]

    def __iter__(self) -> Iterator[Individual]:
        return iter(self._individuals)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Network):
            return NotImplemented
        return self._individuals == other._individuals

    def __repr__(self) -> str:
        counts = self.get_state_counts()
        summary = ', '.join(f"{state.label}={counts[state]}" for state in DiseaseState)
        return f"Network(size={self.size}, {summary})"

    def with_updates(self, updates: Mapping[int, Individual]) -> 'Network':
        """New network with the given individuals replaced"""
        if not updates:
            return self
        individuals = list(self._individuals)
        for individual_id, person in updates.items():
            individuals[individual_id] = person
        return Network(individuals)

    def reset(self) -> 'Network':
        """Same topology and layout, everyone susceptible again"""
        return Network([
            Individual(id=p.id, neighbors=p.neighbors, position=p.position)
            for p in self._individuals
        ])

    # --- state queries ---

    def states(self) -> np.ndarray:
        """Disease state of every individual, indexed by id"""
        return np.fromiter((p.state for p in self._individuals), dtype=np.int8, count=self.size)

    def get_state_counts(self) -> Dict[DiseaseState, int]:
        """Count people in each disease state"""
        counts = np.bincount(self.states(), minlength=len(DiseaseState))
        return {state: int(counts[state]) for state in DiseaseState}

    def get_susceptible(self) -> List[Individual]:
        return [p for p in self._individuals if p.state == DiseaseState.SUSCEPTIBLE]

    def get_exposed(self) -> List[Individual]:
        return [p for p in self._individuals if p.state == DiseaseState.EXPOSED]

    def get_infectious(self) -> List[Individual]:
        return [p for p in self._individuals if p.state == DiseaseState.INFECTIOUS]

    # --- topology ---

    def degrees(self) -> np.ndarray:
        return np.fromiter((p.degree for p in self._individuals), dtype=np.int64, count=self.size)

    def edges(self) -> List[Tuple[int, int]]:
        """Each undirected edge once, as (lower id, higher id)"""
        return [
            (p.id, other)
            for p in self._individuals
            for other in sorted(p.neighbors)
            if p.id < other
        ]

    @property
    def edge_count(self) -> int:
        return int(self.degrees().sum()) // 2

    def validate(self) -> 'Network':
        """Check the graph is simple and undirected"""
        for p in self._individuals:
            if p.id in p.neighbors:
                raise InvariantViolation(f"individual {p.id} is its own neighbor")
            for other in p.neighbors:
                if not 0 <= other < self.size:
                    raise InvariantViolation(
                        f"individual {p.id} lists unknown neighbor {other}"
                    )
                if p.id not in self._individuals[other].neighbors:
                    raise InvariantViolation(
                        f"edge {p.id}-{other} missing from {other}'s neighbors"
                    )
        return self

    def to_networkx(self) -> nx.Graph:
        """Export as a networkx graph with individual attributes on the nodes"""
        graph = nx.Graph()
        for p in self._individuals:
            graph.add_node(
                p.id,
                state=p.state.label,
                exposure_day=p.exposure_day,
                infection_day=p.infection_day,
                recovery_day=p.recovery_day,
                death_day=p.death_day,
                vaccinated=p.vaccinated,
                position=p.position,
            )
        graph.add_edges_from(self.edges())
        return graph

    def to_dict(self) -> Dict:
        return {
            'nodes': [p.to_dict() for p in self._individuals],
            'edges': [list(edge) for edge in self.edges()],
        }
