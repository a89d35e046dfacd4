"""
ACR Gate Model Repository

Redis-based persistence of the editable ACR model (catalog, users and
sessions) as one JSON document in the camelCase wire format.

Key Schema:
    ACR_MODEL:{namespace}   → AuthModel JSON (no TTL)

A missing or invalid stored document is reported as "no model". A Redis
read failure raises ModelStoreUnavailableError instead, so callers never
mistake an unreachable store for an empty one. Failed writes are logged
and reported as "not saved".
"""

from __future__ import annotations

import logging
from typing import Optional

import redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from core.exceptions import ModelStoreUnavailableError
from core.schemas.inputs import AuthModel
from .connection import get_redis_client


logger = logging.getLogger(__name__)


class ModelRepository:
    """Load/save the ACR model from Redis."""
    
    KEY_PREFIX: str = "ACR_MODEL"
    
    def __init__(
        self,
        namespace: str = "default",
        client: Optional[redis.Redis] = None
    ) -> None:
        self.namespace = namespace
        self.client = client if client is not None else get_redis_client()
    
    def _model_key(self) -> str:
        return f"{self.KEY_PREFIX}:{self.namespace}"

    def get_model(self) -> Optional[AuthModel]:
        """
        Get the stored model, None if missing or invalid.

        Raises:
            ModelStoreUnavailableError: Redis could not be read.
        """
        key = self._model_key()
        try:
            data = self.client.get(key)
        except RedisError as e:
            logger.error(f"Failed to read ACR model {key}: {e}")
            raise ModelStoreUnavailableError(f"Cannot read ACR model {key}: {e}") from e

        if data is None:
            return None
        try:
            return AuthModel.model_validate_json(data)
        except ValidationError as e:
            logger.error(f"Stored ACR model {key} is invalid, ignoring it: {e}")
            return None
    
    def save_model(self, model: AuthModel) -> bool:
        """Persist the model. Returns False if Redis rejected the write."""
        key = self._model_key()
        try:
            self.client.set(key, model.model_dump_json(by_alias=True))
            return True
        except RedisError as e:
            logger.error(f"Failed to save ACR model {key}: {e}")
            return False
    
    def delete_model(self) -> None:
        """Forget the stored model."""
        try:
            self.client.delete(self._model_key())
        except RedisError as e:
            logger.warning(f"Failed to delete ACR model {self._model_key()}: {e}")
