"""
Geometry Package

World-space vector math and volume grid geometry.
"""

from .vector import dot, cross, as_vector
from .grid import VolumeGrid, identity_grid

__all__ = [
    'dot',
    'cross',
    'as_vector',
    'VolumeGrid',
    'identity_grid',
]
