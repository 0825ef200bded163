"""
Contact Network Generator
=========================
Scale-free contact graphs through Barabási-Albert preferential attachment
"""

import logging
import numpy as np
from typing import List, Optional, Set

from .disease_params import NetworkConfig
from .population import Network

logger = logging.getLogger(__name__)

# Layout cube edge length, centred on the origin
LAYOUT_EXTENT = 100.0


class NetworkGenerator:
    """
    Builds contact networks with preferential attachment

    All randomness in the network topology comes from the generator's
    `rng`, so a fixed seed reproduces the same graph.
    """

    def __init__(self, rng: Optional[np.random.Generator] = None, seed: int = None):
        """
        Args:
            rng: Random source; takes precedence over seed
            seed: Seed for a fresh default_rng when rng is not given
        """
        self.rng = rng if rng is not None else np.random.default_rng(seed)

    def generate(self,
                 population_size: int,
                 seed_network_size: int = 5,
                 attachments_per_node: int = 3,
                 initially_infected: int = 5,
                 with_positions: bool = True) -> Network:
        """
        Generate a Barabási-Albert network and seed infections

        Args:
            population_size: Number of individuals (n)
            seed_network_size: Size of the initial complete graph (m0)
            attachments_per_node: Edges from each new individual (m)
            initially_infected: Individuals infectious on day 0
            with_positions: Assign random layout coordinates

        Raises:
            ParameterError: If a bound is violated; nothing is built
        """
        config = NetworkConfig(
            population_size=population_size,
            initially_infected=initially_infected,
            seed_network_size=seed_network_size,
            attachments_per_node=attachments_per_node,
            with_positions=with_positions,
        )
        return self.generate_from_config(config)

    def generate_from_config(self, config: NetworkConfig) -> Network:
        config.validate()

        adjacency = self._build_topology(
            config.population_size,
            config.seed_network_size,
            config.attachments_per_node,
        )

        # Positions are drawn after the topology so they never shift it
        positions = None
        if config.with_positions:
            half = LAYOUT_EXTENT / 2
            positions = self.rng.uniform(-half, half, size=(config.population_size, 3))

        network = Network.from_adjacency(adjacency, positions)
        network = self._seed_infections(network, config.initially_infected)

        logger.info(
            "Generated network: %d individuals, %d edges, %d initially infectious",
            network.size, network.edge_count, config.initially_infected,
        )
        return network

    def _build_topology(self,
                        population_size: int,
                        seed_network_size: int,
                        attachments_per_node: int) -> List[Set[int]]:
        adjacency: List[Set[int]] = [set() for _ in range(population_size)]
        degrees = np.zeros(population_size, dtype=np.float64)

        # Complete graph over the seed individuals
        for i in range(seed_network_size):
            for j in range(i + 1, seed_network_size):
                adjacency[i].add(j)
                adjacency[j].add(i)
        degrees[:seed_network_size] = seed_network_size - 1

        # Preferential attachment for everyone else
        for i in range(seed_network_size, population_size):
            targets = self._select_targets(degrees[:i], attachments_per_node)
            for target in targets:
                adjacency[i].add(target)
                adjacency[target].add(i)
                degrees[target] += 1
            degrees[i] = len(targets)

        return adjacency

    def _select_targets(self, degrees: np.ndarray, attachments_per_node: int) -> List[int]:
        """
        Pick distinct existing individuals, each draw proportional to degree

        Falls back to a uniform pick among the unselected when the weighted
        draw cannot produce a fresh target (zero total weight or rounding
        at the top of the cumulative distribution).
        """
        n_existing = len(degrees)
        n_targets = min(attachments_per_node, n_existing)
        weights = degrees.astype(np.float64)
        taken = np.zeros(n_existing, dtype=bool)
        selected: List[int] = []

        while len(selected) < n_targets:
            choice = None
            total = weights.sum()
            if total > 0:
                cumulative = np.cumsum(weights) / total
                j = int(np.searchsorted(cumulative, self.rng.random(), side='right'))
                if j < n_existing and not taken[j]:
                    choice = j

            if choice is None:
                choice = int(self.rng.choice(np.flatnonzero(~taken)))

            selected.append(choice)
            taken[choice] = True
            weights[choice] = 0.0

        return selected

    def _seed_infections(self, network: Network, initially_infected: int) -> Network:
        """Make a uniform random sample of individuals infectious on day 0"""
        if initially_infected == 0:
            return network
        chosen = self.rng.choice(network.size, size=initially_infected, replace=False)
        updates = {
            int(i): network[int(i)].become_infectious(0)
            for i in chosen
        }
        return network.with_updates(updates)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)

    generator = NetworkGenerator(seed=42)
    net = generator.generate(population_size=1000)
    degrees = net.degrees()

    print("Network Generator Test")
    print("=" * 50)
    print(net)
    print(f"Mean degree: {degrees.mean():.2f}")
    print(f"Max degree:  {degrees.max()}")
