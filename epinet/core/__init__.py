"""Core epidemic modeling components"""

from .errors import SimulationError, ParameterError, InvariantViolation, RunStateError
from .disease_params import SimulationParameters, NetworkConfig, SimulationConfig, DEFAULT_PARAMS
from .population import Network, Individual, DiseaseState
from .network_generator import NetworkGenerator
from .seir_model import DiseaseSimulationEngine, SimulationState, DailySnapshot, History
from .orchestrator import SimulationOrchestrator, RunHandle, RunStatus
from .config import RunConfig, load_config, config_from_dict, default_config

__all__ = [
    'SimulationError',
    'ParameterError',
    'InvariantViolation',
    'RunStateError',
    'SimulationParameters',
    'NetworkConfig',
    'SimulationConfig',
    'DEFAULT_PARAMS',
    'Network',
    'Individual',
    'DiseaseState',
    'NetworkGenerator',
    'DiseaseSimulationEngine',
    'SimulationState',
    'DailySnapshot',
    'History',
    'SimulationOrchestrator',
    'RunHandle',
    'RunStatus',
    'RunConfig',
    'load_config',
    'config_from_dict',
    'default_config',
]
