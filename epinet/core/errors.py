"""
Simulation Errors
=================
Exception taxonomy shared by the generator, engine and orchestrator
"""


class SimulationError(Exception):
    """Base class for all epinet errors"""


class ParameterError(SimulationError, ValueError):
    """
    Out-of-domain input (e.g. more initial infections than people)

    Always raised before any construction happens.
    """

    def __init__(self, name: str, value, bound: str):
        self.name = name
        self.value = value
        self.bound = bound
        super().__init__(f"{name} must satisfy {bound}, got {value!r}")


class InvariantViolation(SimulationError, RuntimeError):
    """Internal consistency failure; the run cannot continue"""


class RunStateError(SimulationError):
    """Orchestrator operation called in the wrong run state"""
