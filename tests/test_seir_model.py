"""Tests for epinet.core.seir_model: SEIRD progression and transmission.

Properties checked:
  - Counts sum to the population on every day
  - Day indices run 0, 1, 2, ... without gaps
  - Recovered and dead individuals never change state again
  - Same seed → identical histories
  - Transmission uses start-of-day states
  - Per-neighbor independent transmission draws
"""

import numpy as np
import pytest

from epinet.core import (
    DailySnapshot,
    DiseaseSimulationEngine,
    DiseaseState,
    History,
    InvariantViolation,
    NetworkGenerator,
    SimulationParameters,
    SimulationState,
)

from conftest import make_network


def _run(network, params, days, seed=1, vaccination=0.0):
    engine = DiseaseSimulationEngine(seed=seed)
    state = engine.initialize(network, vaccination)
    states = [state]
    for _ in range(days):
        state = engine.advance_one_day(state, params)
        states.append(state)
    return states


class TestInitialize:
    def test_day_zero_snapshot(self, scenario_network):
        state = DiseaseSimulationEngine(seed=0).initialize(scenario_network, 0.0)
        assert state.day == 0
        assert len(state.history) == 1
        assert state.stats == DailySnapshot(day=0, susceptible=95, exposed=0,
                                            infectious=5, recovered=0, dead=0)

    def test_vaccination_fraction_floor(self, scenario_network):
        state = DiseaseSimulationEngine(seed=0).initialize(scenario_network, 0.5)
        # floor(95 * 0.5) = 47
        assert state.stats.recovered == 47
        assert state.stats.susceptible == 48
        assert state.stats.infectious == 5
        vaccinated = [p for p in state.network if p.vaccinated]
        assert len(vaccinated) == 47
        assert all(p.state == DiseaseState.RECOVERED for p in vaccinated)

    def test_full_vaccination(self, scenario_network, scenario_params):
        states = _run(scenario_network, scenario_params, days=30, vaccination=1.0)
        assert states[0].stats.susceptible == 0
        assert states[0].stats.recovered == 95
        assert all(s.stats.exposed == 0 for s in states)

    def test_input_network_untouched(self, scenario_network):
        before = scenario_network.get_state_counts()
        DiseaseSimulationEngine(seed=0).initialize(scenario_network, 1.0)
        assert scenario_network.get_state_counts() == before


class TestInvariants:
    def test_conservation_and_day_index(self, scenario_network, scenario_params):
        states = _run(scenario_network, scenario_params, days=60)
        history = states[-1].history
        assert [s.day for s in history] == list(range(61))
        for snapshot in history:
            assert snapshot.total == 100

    def test_history_is_prefix_of_later_history(self, scenario_network, scenario_params):
        states = _run(scenario_network, scenario_params, days=20)
        for earlier, later in zip(states, states[1:]):
            assert len(later.history) == len(earlier.history) + 1
            assert list(later.history)[:-1] == list(earlier.history)

    def test_terminal_absorption(self, scenario_network, scenario_params):
        states = _run(scenario_network, scenario_params, days=80)
        terminal = {}
        for state in states:
            for person in state.network:
                if person.id in terminal:
                    assert person.state == terminal[person.id]
                elif person.state.is_terminal:
                    terminal[person.id] = person.state

    def test_timestamps_monotonic(self, scenario_network, scenario_params):
        final = _run(scenario_network, scenario_params, days=80)[-1]
        for p in final.network:
            days = [d for d in (p.exposure_day, p.infection_day, p.recovery_day or p.death_day)
                    if d is not None]
            assert days == sorted(days)

    def test_size_mismatch_is_invariant_violation(self, scenario_network, scenario_params):
        state = DiseaseSimulationEngine(seed=0).initialize(scenario_network)
        other = NetworkGenerator(seed=0).generate(50)
        broken = SimulationState(network=other, day=0, history=state.history)
        with pytest.raises(InvariantViolation):
            DiseaseSimulationEngine(seed=0).advance_one_day(broken, scenario_params)

    def test_day_history_mismatch(self, scenario_network, scenario_params):
        state = DiseaseSimulationEngine(seed=0).initialize(scenario_network)
        broken = SimulationState(network=state.network, day=3, history=state.history)
        with pytest.raises(InvariantViolation):
            DiseaseSimulationEngine(seed=0).advance_one_day(broken, scenario_params)


class TestDeterminism:
    def test_same_seed_identical_history(self, scenario_params):
        def once():
            net = NetworkGenerator(seed=11).generate(200, initially_infected=5)
            return _run(net, scenario_params, days=50, seed=11)[-1]

        a, b = once(), once()
        assert a.history == b.history
        assert a.history.to_records() == b.history.to_records()
        assert a.network == b.network


class TestScenario:
    def test_reference_scenario(self, scenario_network, scenario_params):
        states = _run(scenario_network, scenario_params, days=5)
        assert states[0].stats.susceptible == 95
        assert states[0].stats.infectious == 5
        infectious = [s.stats.infectious for s in states]
        assert infectious == sorted(infectious)
        assert all(s.stats.exposed >= 0 for s in states)
        # No resolutions before day 10
        assert all(s.stats.recovered == 0 and s.stats.dead == 0 for s in states)

    def test_burnout_without_transmission(self, scenario_network):
        params = SimulationParameters(reproduction_number=0.0, incubation_duration=5,
                                      infectious_duration=10)
        states = _run(scenario_network, params, days=15)
        assert states[15].stats.exposed == 0
        assert states[15].stats.infectious == 0
        assert states[15].stats.susceptible == 95
        assert all(s.stats.exposed == 0 for s in states)

    def test_run_stops_at_burnout(self, scenario_network):
        params = SimulationParameters(reproduction_number=0.0, infectious_duration=10)
        engine = DiseaseSimulationEngine(seed=0)
        final = engine.run(engine.initialize(scenario_network), params, days=100)
        assert final.day == 10
        assert final.stats.is_burned_out


class TestProgression:
    def test_exposed_becomes_infectious_after_incubation(self):
        net = make_network([[1], [0]], {0: DiseaseState.EXPOSED})
        params = SimulationParameters(reproduction_number=0.0, incubation_duration=3,
                                      infectious_duration=5)
        states = _run(net, params, days=3)
        assert states[2].network[0].state == DiseaseState.EXPOSED
        assert states[3].network[0].state == DiseaseState.INFECTIOUS
        assert states[3].network[0].infection_day == 3

    @pytest.mark.parametrize("recovery, outcome", [
        (1.0, DiseaseState.RECOVERED),
        (0.0, DiseaseState.DEAD),
    ])
    def test_resolution_outcome(self, recovery, outcome):
        net = make_network([[1], [0]], {0: DiseaseState.INFECTIOUS, 1: DiseaseState.INFECTIOUS})
        params = SimulationParameters(reproduction_number=0.0, infectious_duration=2,
                                      recovery_probability=recovery)
        states = _run(net, params, days=2)
        assert states[1].stats.infectious == 2
        for person in states[2].network:
            assert person.state == outcome
            if outcome == DiseaseState.RECOVERED:
                assert person.recovery_day == 2 and person.death_day is None
            else:
                assert person.death_day == 2 and person.recovery_day is None


class TestTransmission:
    def test_certain_transmission(self):
        net = make_network([[1, 2], [0], [0]], {0: DiseaseState.INFECTIOUS})
        params = SimulationParameters(reproduction_number=10.0, infectious_duration=5)
        day1 = _run(net, params, days=1)[1]
        assert day1.network[1].state == DiseaseState.EXPOSED
        assert day1.network[1].exposure_day == 1
        assert day1.network[2].state == DiseaseState.EXPOSED

    def test_full_contact_reduction_blocks_spread(self):
        net = make_network([[1, 2], [0], [0]], {0: DiseaseState.INFECTIOUS})
        params = SimulationParameters(reproduction_number=10.0, infectious_duration=5,
                                      contact_reduction=1.0)
        states = _run(net, params, days=4)
        assert all(s.stats.exposed == 0 for s in states)

    def test_newly_infectious_do_not_transmit_same_day(self):
        net = make_network([[1], [0]], {0: DiseaseState.EXPOSED})
        params = SimulationParameters(reproduction_number=10.0, incubation_duration=1,
                                      infectious_duration=5)
        states = _run(net, params, days=2)
        assert states[1].network[0].state == DiseaseState.INFECTIOUS
        assert states[1].network[1].state == DiseaseState.SUSCEPTIBLE
        assert states[2].network[1].state == DiseaseState.EXPOSED

    def test_newly_exposed_do_not_transmit_same_day(self):
        # Chain 0 - 1 - 2
        net = make_network([[1], [0, 2], [1]], {0: DiseaseState.INFECTIOUS})
        params = SimulationParameters(reproduction_number=10.0, incubation_duration=1,
                                      infectious_duration=5)
        day1 = _run(net, params, days=1)[1]
        assert day1.network[1].state == DiseaseState.EXPOSED
        assert day1.network[2].state == DiseaseState.SUSCEPTIBLE

    def test_resolving_individuals_do_not_transmit(self):
        net = make_network([[1], [0]], {0: DiseaseState.INFECTIOUS})
        params = SimulationParameters(reproduction_number=10.0, infectious_duration=1)
        day1 = _run(net, params, days=1)[1]
        assert day1.network[0].state.is_terminal
        assert day1.network[1].state == DiseaseState.SUSCEPTIBLE

    def test_dead_and_recovered_neighbors_are_ignored(self):
        net = make_network([[1, 2], [0], [0]],
                           {0: DiseaseState.INFECTIOUS, 1: DiseaseState.DEAD,
                            2: DiseaseState.RECOVERED})
        params = SimulationParameters(reproduction_number=10.0, infectious_duration=5)
        states = _run(net, params, days=3)
        assert states[-1].network[1].state == DiseaseState.DEAD
        assert states[-1].network[2].state == DiseaseState.RECOVERED

    def test_independent_draw_per_infectious_neighbor(self):
        """A susceptible with k infectious neighbors is infected w.p. 1 - (1 - p)^k."""
        k, trials = 4, 3000
        net = make_network([[1, 2, 3, 4], [0], [0], [0], [0]],
                           {i: DiseaseState.INFECTIOUS for i in range(1, k + 1)})
        params = SimulationParameters(reproduction_number=1.0, infectious_duration=4)
        engine = DiseaseSimulationEngine(seed=2024)
        initial = engine.initialize(net)

        hits = sum(
            engine.advance_one_day(initial, params).network[0].state == DiseaseState.EXPOSED
            for _ in range(trials)
        )
        expected = 1 - (1 - 0.25) ** k
        assert abs(hits / trials - expected) < 0.04


class TestHistory:
    def test_append_out_of_order(self):
        history = History().appended(DailySnapshot(0, 10, 0, 0, 0, 0))
        with pytest.raises(InvariantViolation):
            history.appended(DailySnapshot(2, 10, 0, 0, 0, 0))

    def test_append_population_change(self):
        history = History().appended(DailySnapshot(0, 10, 0, 0, 0, 0))
        with pytest.raises(InvariantViolation):
            history.appended(DailySnapshot(1, 9, 0, 0, 0, 0))

    def test_appending_leaves_original(self):
        history = History().appended(DailySnapshot(0, 10, 0, 0, 0, 0))
        longer = history.appended(DailySnapshot(1, 9, 1, 0, 0, 0))
        assert len(history) == 1
        assert len(longer) == 2

    def test_dataframe(self, scenario_network, scenario_params):
        df = _run(scenario_network, scenario_params, days=10)[-1].history.to_dataframe()
        assert list(df.columns) == ['day', 'susceptible', 'exposed', 'infectious', 'recovered', 'dead']
        assert len(df) == 11
        np.testing.assert_array_equal(df.iloc[:, 1:].sum(axis=1).to_numpy(), np.full(11, 100))
