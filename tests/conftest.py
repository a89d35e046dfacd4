"""
ACR Gate Test Suite - Shared Pytest Fixtures

This conftest.py provides fixtures for all test categories including:
- A fixed evaluation instant and model builders around it
- Redis connection and cleanup for persistence tests

Usage:
    pytest tests/ -v
"""

import os
import pytest
from typing import Any, Dict, List, Optional

from core.schemas.inputs import AuthModel
from core.state_manager import DEFAULT_CATALOG, build_default_model


# Fixed "now" so every freshness computation is reproducible
NOW_MS = 1_768_999_349_620


# =============================================================================
# Model Fixtures
# =============================================================================

@pytest.fixture
def now_ms() -> int:
    """Evaluation instant shared by a test and its model."""
    return NOW_MS


@pytest.fixture
def default_model(now_ms) -> AuthModel:
    """
    Default simulator model built relative to `now_ms`.
    
    Session "1" (arthur): phone_otp 10s ago, phone_biometry 1000s ago.
    """
    return build_default_model(now_ms)


@pytest.fixture
def make_model(now_ms):
    """
    Factory for models over the default catalog.
    
    Usage:
        model = make_model(
            enrolled=["phone_otp"],
            history=[("phone_otp", 10)],   # (amr id, seconds ago)
        )
    
    Produces user "u1" and session "s1". Raw `validatedAt` values can be
    given as history entries of the form (amr_id, None, raw_value).
    """
    def _make_model(
        enrolled: List[str],
        history: Optional[List[tuple]] = None,
        amrs: Optional[List[Dict[str, Any]]] = None,
        acr: Optional[Dict[str, Any]] = None,
    ) -> AuthModel:
        actions = []
        for entry in history or []:
            if len(entry) == 3:
                amr_id, _, raw = entry
                actions.append({"methodId": amr_id, "validatedAt": raw})
            else:
                amr_id, seconds_ago = entry
                actions.append({"methodId": amr_id, "validatedAt": str(now_ms - seconds_ago * 1000)})
        
        return AuthModel.model_validate({
            "amrs": amrs if amrs is not None else DEFAULT_CATALOG["amrs"],
            "acr": acr if acr is not None else DEFAULT_CATALOG["acr"],
            "users": [{"id": "u1", "enrolledMeans": enrolled}],
            "sessions": [{"id": "s1", "userId": "u1", "pastAuthenticationActions": actions}],
        })
    
    return _make_model


# =============================================================================
# Redis Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def redis_client():
    """
    Session-scoped Redis client for persistence tests.
    
    Skips when no Redis server is reachable.
    """
    import redis
    
    host = os.environ.get("REDIS_HOST", "localhost")
    port = int(os.environ.get("REDIS_PORT", "6379"))
    password = os.environ.get("REDIS_PASSWORD") or None
    
    client = redis.Redis(
        host=host,
        port=port,
        password=password,
        decode_responses=True,
        socket_connect_timeout=1.0,
    )
    try:
        client.ping()
    except redis.exceptions.RedisError:
        pytest.skip(f"Redis not available at {host}:{port}")
    yield client
    client.close()


@pytest.fixture
def clean_redis(redis_client):
    """
    Function-scoped fixture that provides a clean Redis state.
    Deletes test keys after each test for isolation.
    """
    yield redis_client
    for key in redis_client.scan_iter("ACR_MODEL:test_*"):
        redis_client.delete(key)
