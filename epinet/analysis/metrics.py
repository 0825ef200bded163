"""
Epidemic Metrics
================
Derived series and summary figures for a finished or running simulation
"""

from typing import Dict, Union

import networkx as nx
import numpy as np
import pandas as pd

from ..core.population import Network
from ..core.seir_model import History

STATE_COLUMNS = ['susceptible', 'exposed', 'infectious', 'recovered', 'dead']


def history_to_dataframe(history: Union[History, pd.DataFrame]) -> pd.DataFrame:
    """Accept a History or an already-converted frame"""
    if isinstance(history, pd.DataFrame):
        return history
    return history.to_dataframe()


def daily_incidence(history: Union[History, pd.DataFrame]) -> pd.DataFrame:
    """
    New cases per day in each compartment

    Flows are estimated from consecutive snapshots and clipped at zero.
    Day 0 reports the raw exposed/infectious/recovered/dead counts.

    Returns:
        DataFrame with columns day, new_exposed, new_infectious,
        new_recovered, new_dead
    """
    df = history_to_dataframe(history)
    diff = df[STATE_COLUMNS].diff()

    incidence = pd.DataFrame({
        'day': df['day'],
        'new_exposed': diff['exposed'] + diff['infectious'],
        'new_infectious': diff['infectious'] + diff['recovered'],
        'new_recovered': diff['recovered'],
        'new_dead': diff['dead'],
    })
    incidence = incidence.clip(lower=0)

    if len(df) > 0:
        first = df.iloc[0]
        incidence.loc[incidence.index[0], ['new_exposed', 'new_infectious', 'new_recovered', 'new_dead']] = [
            first['exposed'], first['infectious'], first['recovered'], first['dead']
        ]

    return incidence.astype(int)


def summarize(history: Union[History, pd.DataFrame]) -> Dict[str, float]:
    """
    Headline numbers for a run

    Day-0 recoveries are vaccinations and are not counted as cases.
    """
    df = history_to_dataframe(history)
    if len(df) == 0:
        raise ValueError("history is empty")

    first = df.iloc[0]
    last = df.iloc[-1]
    population = int(last[STATE_COLUMNS].sum())

    total_cases = int(last['exposed'] + last['infectious'] + last['recovered'] + last['dead'])
    ever_infected = total_cases - int(first['recovered'])
    resolved = int(last['recovered'] - first['recovered'] + last['dead'])
    peak_row = df.loc[df['infectious'].idxmax()]

    return {
        'current_day': int(last['day']),
        'population': population,
        'total_cases': total_cases,
        'active_cases': int(last['exposed'] + last['infectious']),
        'peak_infectious': int(peak_row['infectious']),
        'peak_day': int(peak_row['day']),
        'deaths': int(last['dead']),
        'vaccinated': int(first['recovered']),
        'attack_rate': ever_infected / population,
        'case_fatality': (int(last['dead']) / resolved) if resolved > 0 else 0.0,
    }


def degree_statistics(network: Network) -> Dict[str, object]:
    """Degree summary of the contact network"""
    graph = network.to_networkx()
    degrees = np.array([d for _, d in graph.degree()])

    return {
        'nodes': graph.number_of_nodes(),
        'edges': graph.number_of_edges(),
        'mean_degree': float(degrees.mean()) if len(degrees) else 0.0,
        'max_degree': int(degrees.max()) if len(degrees) else 0,
        'connected': nx.is_connected(graph) if len(degrees) else False,
        'degree_histogram': nx.degree_histogram(graph),
    }
