"""
ACR Gate Redis Connection

One shared client for the model store. The whole editable model lives in a
single key, read once at startup and rewritten on every mutation, so the
pool stays small.

Environment:
- REDIS_HOST: Hostname (default: localhost)
- REDIS_PORT: Port (default: 6379)
- REDIS_DB: Database index holding the ACR_MODEL:* keys (default: 0)
- REDIS_PASSWORD: Password (REQUIRED for the redis backend)
"""

import os
import logging
from functools import lru_cache

import redis
from redis.exceptions import RedisError, AuthenticationError

logger = logging.getLogger(__name__)

# Mutations are serialized by the StateManager lock; reads happen at startup
MAX_CONNECTIONS = 10
SOCKET_TIMEOUT_SECONDS = 5.0


@lru_cache(maxsize=1)
def get_redis_client() -> redis.Redis:
    """
    Return the process-wide Redis client for ACR model persistence.

    Pings on creation so a misconfigured store fails at startup, before
    the StateManager loads (or seeds) the model.

    Raises:
        ValueError: REDIS_PASSWORD is not set.
        RedisError: The server is unreachable or rejected the credentials.
    """
    host = os.getenv("REDIS_HOST", "localhost")
    port = int(os.getenv("REDIS_PORT", 6379))
    db = int(os.getenv("REDIS_DB", 0))
    password = os.getenv("REDIS_PASSWORD")

    if not password:
        logger.critical("REDIS_PASSWORD is not set; cannot use the redis model store.")
        raise ValueError("REDIS_PASSWORD is required to persist the ACR model.")

    try:
        pool = redis.ConnectionPool(
            host=host,
            port=port,
            db=db,
            password=password,
            decode_responses=True,  # Model JSON is handled as str
            max_connections=MAX_CONNECTIONS,
            socket_timeout=SOCKET_TIMEOUT_SECONDS
        )
        client = redis.Redis(connection_pool=pool)
        client.ping()
        logger.info(f"ACR model store connected to Redis at {host}:{port}/{db}")
        return client

    except AuthenticationError:
        logger.critical(f"Redis at {host}:{port} rejected REDIS_PASSWORD.")
        raise
    except RedisError as e:
        logger.critical(f"ACR model store unreachable at {host}:{port}/{db}: {e}")
        raise
