"""
SEIRD Simulation Engine
=======================
Day-by-day disease progression and transmission over a contact network
"""

import logging
import numpy as np
import pandas as pd
from dataclasses import dataclass, asdict
from typing import Dict, Iterator, List, Optional, Tuple

from .disease_params import SimulationParameters
from .errors import InvariantViolation, ParameterError
from .population import Network, Individual, DiseaseState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DailySnapshot:
    """State counts for one simulated day"""
    day: int
    susceptible: int
    exposed: int
    infectious: int
    recovered: int
    dead: int

    @classmethod
    def from_network(cls, network: Network, day: int) -> 'DailySnapshot':
        counts = network.get_state_counts()
        snapshot = cls(
            day=day,
            susceptible=counts[DiseaseState.SUSCEPTIBLE],
            exposed=counts[DiseaseState.EXPOSED],
            infectious=counts[DiseaseState.INFECTIOUS],
            recovered=counts[DiseaseState.RECOVERED],
            dead=counts[DiseaseState.DEAD],
        )
        if snapshot.total != network.size:
            raise InvariantViolation(
                f"day {day}: state counts sum to {snapshot.total}, "
                f"population is {network.size}"
            )
        return snapshot

    @property
    def total(self) -> int:
        return self.susceptible + self.exposed + self.infectious + self.recovered + self.dead

    @property
    def active(self) -> int:
        """Exposed plus infectious"""
        return self.exposed + self.infectious

    @property
    def is_burned_out(self) -> bool:
        return self.active == 0

    def count(self, state: DiseaseState) -> int:
        return getattr(self, state.label)

    def to_dict(self) -> Dict[str, int]:
        return asdict(self)


class History:
    """
    Append-only sequence of daily snapshots, indexed by day

    `appended` returns a new History; existing ones never change.
    """

    def __init__(self, snapshots: Tuple[DailySnapshot, ...] = ()):
        self._snapshots = tuple(snapshots)
        for index, snapshot in enumerate(self._snapshots):
            if snapshot.day != index:
                raise InvariantViolation(
                    f"history entry {index} is for day {snapshot.day}"
                )

    def appended(self, snapshot: DailySnapshot) -> 'History':
        if snapshot.day != len(self._snapshots):
            raise InvariantViolation(
                f"cannot append day {snapshot.day} after {len(self._snapshots)} days"
            )
        if self._snapshots and snapshot.total != self.population:
            raise InvariantViolation(
                f"day {snapshot.day} covers {snapshot.total} individuals, "
                f"history covers {self.population}"
            )
        history = History.__new__(History)
        history._snapshots = self._snapshots + (snapshot,)
        return history

    @property
    def population(self) -> Optional[int]:
        return self._snapshots[0].total if self._snapshots else None

    @property
    def latest(self) -> DailySnapshot:
        if not self._snapshots:
            raise IndexError("history is empty")
        return self._snapshots[-1]

    def __len__(self) -> int:
        return len(self._snapshots)

    def __getitem__(self, day: int) -> DailySnapshot:
        return self._snapshots[day]

    def __iter__(self) -> Iterator[DailySnapshot]:
        return iter(self._snapshots)

    def __eq__(self, other) -> bool:
        if not isinstance(other, History):
            return NotImplemented
        return self._snapshots == other._snapshots

    def to_records(self) -> List[Dict[str, int]]:
        return [snapshot.to_dict() for snapshot in self._snapshots]

    def to_dataframe(self) -> pd.DataFrame:
        """Time series with one row per day"""
        columns = ['day', 'susceptible', 'exposed', 'infectious', 'recovered', 'dead']
        return pd.DataFrame(self.to_records(), columns=columns)


@dataclass(frozen=True)
class SimulationState:
    """Network and history after a given day"""
    network: Network
    day: int
    history: History

    @property
    def stats(self) -> DailySnapshot:
        return self.history.latest


class DiseaseSimulationEngine:
    """
    Stochastic SEIRD engine on a contact network

    Holds nothing between calls except its random source: every call maps
    an input SimulationState to a new one.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None, seed: int = None):
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def initialize(self, network: Network, vaccination_fraction: float = 0.0) -> SimulationState:
        """
        Apply vaccination and record the day-0 snapshot

        Args:
            network: Freshly generated network
            vaccination_fraction: Share of susceptible people made immune

        Returns:
            SimulationState for day 0
        """
        if not 0.0 <= vaccination_fraction <= 1.0:
            raise ParameterError('vaccination_fraction', vaccination_fraction, "0 <= value <= 1")

        susceptible = [p.id for p in network.get_susceptible()]
        n_vaccinate = int(np.floor(len(susceptible) * vaccination_fraction))

        if n_vaccinate > 0:
            chosen = self.rng.choice(susceptible, size=n_vaccinate, replace=False)
            network = network.with_updates({int(i): network[int(i)].vaccinate() for i in chosen})
            logger.debug("Vaccinated %d of %d susceptible individuals", n_vaccinate, len(susceptible))

        history = History().appended(DailySnapshot.from_network(network, 0))
        return SimulationState(network=network, day=0, history=history)

    def _progression_step(self,
                          network: Network,
                          day: int,
                          params: SimulationParameters) -> Dict[int, Individual]:
        """
        Duration-based transitions for one day
        E → I after the incubation period, I → R/D after the infectious period
        """
        updates: Dict[int, Individual] = {}

        for person in network:
            if person.state == DiseaseState.EXPOSED:
                if day - (person.exposure_day or 0) >= params.incubation_duration:
                    updates[person.id] = person.become_infectious(day)

            elif person.state == DiseaseState.INFECTIOUS:
                if day - (person.infection_day or 0) >= params.infectious_duration:
                    if self.rng.random() < params.recovery_probability:
                        updates[person.id] = person.recover(day)
                    else:
                        updates[person.id] = person.die(day)

        return updates

    def _transmission_step(self,
                           network: Network,
                           states: np.ndarray,
                           resolved: set,
                           day: int,
                           params: SimulationParameters) -> Dict[int, Individual]:
        """
        New exposures for one day

        For every infectious neighbor, a susceptible individual faces its own
        contact draw and, on contact, its own transmission draw. Work is
        partitioned by susceptible individual so its draws do not depend on
        the order infectious people are visited.
        """
        p_contact = params.contact_probability
        p_transmit = params.transmission_probability
        updates: Dict[int, Individual] = {}

        if p_contact == 0.0 or p_transmit == 0.0:
            return updates

        infectious = (states == DiseaseState.INFECTIOUS)
        if resolved:
            infectious[list(resolved)] = False
        if not infectious.any():
            return updates

        for s_id in np.flatnonzero(states == DiseaseState.SUSCEPTIBLE):
            person = network[int(s_id)]
            for contact_id in sorted(person.neighbors):
                if not infectious[contact_id]:
                    continue
                if self.rng.random() < p_contact and self.rng.random() < p_transmit:
                    updates[person.id] = person.expose(day)
                    break  # Person is now exposed, stop checking more contacts

        return updates

    def advance_one_day(self, state: SimulationState, params: SimulationParameters) -> SimulationState:
        """
        Execute one simulation day

        Transmission decisions use the states at the start of the day:
        people who turn infectious today do not transmit yet, and people
        whose infectious period ends today do not transmit either.
        """
        network = state.network
        if state.history.population != network.size:
            raise InvariantViolation(
                f"network has {network.size} individuals, "
                f"history covers {state.history.population}"
            )
        if len(state.history) != state.day + 1:
            raise InvariantViolation(
                f"state is on day {state.day} but history has {len(state.history)} entries"
            )

        day = state.day + 1
        states = network.states()

        # 1. Disease progression (E → I, I → R/D)
        progressed = self._progression_step(network, day, params)
        resolved = {
            i for i, person in progressed.items()
            if person.state.is_terminal
        }

        # 2. Transmission (S → E)
        exposed = self._transmission_step(network, states, resolved, day, params)

        new_network = network.with_updates({**progressed, **exposed})
        snapshot = DailySnapshot.from_network(new_network, day)

        logger.debug(
            "Day %d: %d progressed, %d newly exposed", day, len(progressed), len(exposed)
        )
        return SimulationState(
            network=new_network,
            day=day,
            history=state.history.appended(snapshot),
        )

    def run(self,
            state: SimulationState,
            params: SimulationParameters,
            days: int) -> SimulationState:
        """Advance up to `days` days, stopping early on burnout"""
        for _ in range(days):
            state = self.advance_one_day(state, params)
            if state.stats.is_burned_out:
                break
        return state


if __name__ == "__main__":
    from .network_generator import NetworkGenerator

    logging.basicConfig(level=logging.INFO)
    rng = np.random.default_rng(42)

    network = NetworkGenerator(rng=rng).generate(population_size=1000, initially_infected=10)
    engine = DiseaseSimulationEngine(rng=rng)
    params = SimulationParameters()

    final = engine.run(engine.initialize(network), params, days=365)
    print(final.history.to_dataframe().tail(10))
