"""
ACR Gate Persistence Layer

Public exports for the Redis connection and model repository.
"""

from .connection import get_redis_client
from .model_repository import ModelRepository

__all__ = [
    "get_redis_client",
    "ModelRepository",
]
