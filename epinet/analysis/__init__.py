"""Derived metrics for simulation results"""

from .metrics import (
    STATE_COLUMNS,
    history_to_dataframe,
    daily_incidence,
    summarize,
    degree_statistics,
)

__all__ = [
    'STATE_COLUMNS',
    'history_to_dataframe',
    'daily_incidence',
    'summarize',
    'degree_statistics',
]
