"""Epidemic simulation on scale-free contact networks"""

from . import core
from . import analysis

__all__ = ['core', 'analysis']
