# rook_server/agents/__init__.py
from .base import RookAgent
from .random_agent import RandomRookAgent

__all__ = [
    "RookAgent",
    "RandomRookAgent",
]
