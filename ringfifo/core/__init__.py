"""
Core ring buffer, protect hooks and precondition checks.
"""

from .assertions import *
from .protect import *
from .ring_buffer import *
