"""
Simulation Orchestrator
=======================
Owns one run: parameters, the current state and every past day
"""

import itertools
import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

import numpy as np
import pandas as pd

from .disease_params import SimulationParameters, NetworkConfig, SimulationConfig
from .errors import RunStateError
from .network_generator import NetworkGenerator
from .seir_model import DiseaseSimulationEngine, SimulationState, DailySnapshot

logger = logging.getLogger(__name__)

_run_ids = itertools.count(1)


class RunStatus(Enum):
    UNINITIALIZED = 'uninitialized'
    RUNNING = 'running'
    PAUSED = 'paused'
    EXHAUSTED = 'exhausted'


@dataclass(frozen=True)
class RunHandle:
    """Identifies a started run and the inputs it was built from"""
    run_id: int
    parameters: SimulationParameters
    network_config: NetworkConfig
    seed: Optional[int]


class SimulationOrchestrator:
    """
    Drives a single simulation run

    The caller owns the loop: call `step` until `is_exhausted`, or use `run`.
    Past days are kept as full states so any of them can be replayed
    without re-simulating.
    """

    def __init__(self, config: Optional[SimulationConfig] = None):
        """
        Args:
            config: Day bound and random seed for runs started here
        """
        self.config = (config or SimulationConfig()).validate()

        self._lock = threading.Lock()
        self._status = RunStatus.UNINITIALIZED
        self._handle: Optional[RunHandle] = None
        self._states: List[SimulationState] = []
        self._engine: Optional[DiseaseSimulationEngine] = None

    # --- lifecycle ---

    def start(self,
              parameters: SimulationParameters,
              network_config: Optional[NetworkConfig] = None) -> RunHandle:
        """
        Build the network, apply vaccination and record day 0

        Every input is validated before anything is built.

        Raises:
            ParameterError: On any out-of-domain input
            RunStateError: If a run already exists (call `reset` first)
        """
        network_config = network_config or NetworkConfig()
        parameters.validate()
        network_config.validate()

        with self._lock:
            if self._status is not RunStatus.UNINITIALIZED:
                raise RunStateError(f"cannot start: run is {self._status.value}, reset first")

            rng = np.random.default_rng(self.config.seed)
            network = NetworkGenerator(rng=rng).generate_from_config(network_config)
            engine = DiseaseSimulationEngine(rng=rng)
            initial = engine.initialize(network, parameters.vaccination_fraction)

            self._engine = engine
            self._states = [initial]
            self._handle = RunHandle(
                run_id=next(_run_ids),
                parameters=parameters,
                network_config=network_config,
                seed=self.config.seed,
            )
            self._status = RunStatus.RUNNING
            self._update_status(initial)

            logger.info(
                "Run %d started: population=%d, infectious=%d, vaccinated=%d",
                self._handle.run_id,
                network.size,
                initial.stats.infectious,
                initial.stats.recovered,
            )
            return self._handle

    def step(self) -> SimulationState:
        """
        Advance the run by one day

        Raises:
            RunStateError: If the run is not running
        """
        with self._lock:
            if self._status is not RunStatus.RUNNING:
                raise RunStateError(f"cannot step: run is {self._status.value}")

            return self._advance()

    def _advance(self) -> SimulationState:
        # Caller holds the lock and has checked the run is RUNNING
        state = self._engine.advance_one_day(self._states[-1], self._handle.parameters)
        self._states.append(state)
        self._update_status(state)
        return state

    def pause(self):
        with self._lock:
            if self._status is not RunStatus.RUNNING:
                raise RunStateError(f"cannot pause: run is {self._status.value}")
            self._status = RunStatus.PAUSED

    def resume(self):
        with self._lock:
            if self._status is not RunStatus.PAUSED:
                raise RunStateError(f"cannot resume: run is {self._status.value}")
            self._status = RunStatus.RUNNING

    def reset(self):
        """Discard the network and history"""
        with self._lock:
            if self._handle is not None:
                logger.info("Run %d reset after %d days", self._handle.run_id, len(self._states) - 1)
            self._status = RunStatus.UNINITIALIZED
            self._handle = None
            self._states = []
            self._engine = None

    def _update_status(self, state: SimulationState):
        if state.stats.is_burned_out:
            self._status = RunStatus.EXHAUSTED
            logger.info("Run %d burned out on day %d", self._handle.run_id, state.day)
        elif state.day >= self.config.max_days:
            self._status = RunStatus.EXHAUSTED
            logger.info("Run %d reached the %d-day bound", self._handle.run_id, state.day)

    # --- reading ---

    @property
    def status(self) -> RunStatus:
        return self._status

    @property
    def handle(self) -> Optional[RunHandle]:
        return self._handle

    @property
    def is_exhausted(self) -> bool:
        return self._status is RunStatus.EXHAUSTED

    @property
    def current_day(self) -> int:
        return self.snapshot().day

    def snapshot(self) -> SimulationState:
        """
        Current state

        States are immutable, so the returned value stays consistent while
        other threads keep stepping.
        """
        with self._lock:
            if not self._states:
                raise RunStateError("no run has been started")
            return self._states[-1]

    def state_at(self, day: int) -> SimulationState:
        """Replay a stored day (network and history as of that day)"""
        with self._lock:
            if not self._states:
                raise RunStateError("no run has been started")
            if not 0 <= day < len(self._states):
                raise IndexError(f"day {day} not simulated (0..{len(self._states) - 1})")
            return self._states[day]

    def snapshot_at(self, day: int) -> DailySnapshot:
        return self.state_at(day).stats

    def results(self) -> pd.DataFrame:
        """Time series of the run so far"""
        return self.snapshot().history.to_dataframe()

    # --- driving loop ---

    def run(self, max_days: Optional[int] = None, verbose: bool = True) -> pd.DataFrame:
        """
        Step until the run is exhausted, paused, or `max_days` more days have passed

        A pause from another thread stops the loop between two days.

        Args:
            max_days: Extra bound on top of the configured one
            verbose: Print progress

        Returns:
            DataFrame with the time series of SEIRD counts
        """
        if self._status is RunStatus.UNINITIALIZED:
            raise RunStateError("start a run before driving it")

        if verbose:
            initial = self.snapshot()
            params = self._handle.parameters
            print(f"Starting simulation...")
            print(f"Population: {initial.network.size}")
            print(f"Initial infections: {initial.stats.infectious}")
            print(f"Day bound: {self.config.max_days} days")
            print(f"R0: {params.reproduction_number:.2f}")
            print()

        steps = 0
        while max_days is None or steps < max_days:
            with self._lock:
                if self._status is not RunStatus.RUNNING:
                    break
                state = self._advance()
            steps += 1

            if verbose and state.day % 30 == 0:
                counts = state.stats
                print(f"Day {counts.day:3d}: S={counts.susceptible:6d}, E={counts.exposed:5d}, "
                      f"I={counts.infectious:5d}, R={counts.recovered:6d}, D={counts.dead:4d}")

        if verbose:
            history = self.snapshot().history
            final = history.latest
            # Day-0 recoveries are vaccinations, not cases
            cases = final.total - final.susceptible - history[0].recovered
            print(f"\nSimulation stopped on day {final.day} ({self._status.value})")
            print(f"Total deaths: {final.dead}")
            print(f"Attack rate: {100 * cases / final.total:.1f}%")

        return self.results()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    print("SEIRD Network Model Test Run")
    print("=" * 60)

    orchestrator = SimulationOrchestrator(SimulationConfig(max_days=365, seed=42))
    orchestrator.start(
        SimulationParameters(reproduction_number=3.0, infectious_duration=10),
        NetworkConfig(population_size=1000, initially_infected=5),
    )
    results = orchestrator.run(verbose=True)
    print(results.tail())
