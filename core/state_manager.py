"""
ACR Gate State Manager

Thread-safe in-memory holder of the editable model (catalog, users,
sessions). It is the only component that mutates users and sessions;
the evaluator always works on a deep-copied snapshot, so a mutation is
visible on the next evaluation only.

With a ModelRepository attached, the stored model is loaded at start and
every mutation is written through. If the store cannot be read at start,
the default model is used in memory only and nothing is written back.

Usage:
    state = StateManager()
    state.record_authentication("1", "password")
    model = state.snapshot()
"""

from __future__ import annotations

import logging
import threading
import time
from typing import TYPE_CHECKING, Any, Dict, Optional

from core.exceptions import (
    MethodNotEnrolledError,
    ModelStoreUnavailableError,
    UnknownActionError,
    UnknownMethodError,
    UnknownSessionError,
    UnknownUserError,
)
from core.schemas.inputs import AuthModel, PastAuthAction, Session, User

if TYPE_CHECKING:
    from persistence.model_repository import ModelRepository


logger = logging.getLogger(__name__)


# =============================================================================
# Default Model
# =============================================================================

DEFAULT_CATALOG: Dict[str, Any] = {
    "amrs": [
        {"id": "phone_otp", "type": "single_factor"},
        {"id": "password", "type": "single_factor"},
        {"id": "phone_biometry", "type": "multi_factor"},
        {"id": "mail_otp", "type": "single_factor"},
    ],
    "acr": {
        "normal": [
            [{"type": "single_factor", "maxAge": 3600}],
            [{"type": "multi_factor", "maxAge": 3600}],
        ],
        "strong": [
            # Two single factors, one of them recent
            [{"type": "single_factor", "maxAge": 93600}, {"type": "single_factor", "maxAge": 300}],
            # Or one very recent multi factor
            [{"type": "multi_factor", "maxAge": 300}],
        ],
    },
}


def build_default_model(now_ms: Optional[float] = None) -> AuthModel:
    """
    Build the out-of-the-box model.

    Mock Data:
        - arthur, bigNoob: enrolled in phone_otp, password, phone_biometry
        - otherNoob: enrolled in phone_otp only
        - Session "1" (arthur): phone_otp 10s ago, phone_biometry 1000s ago
        - Sessions "2" (bigNoob), "3" (otherNoob): empty history
    """
    if now_ms is None:
        now_ms = time.time() * 1000.0

    return AuthModel.model_validate({
        **DEFAULT_CATALOG,
        "users": [
            {"id": "arthur", "enrolledMeans": ["phone_otp", "password", "phone_biometry"]},
            {"id": "bigNoob", "enrolledMeans": ["phone_otp", "password", "phone_biometry"]},
            {"id": "otherNoob", "enrolledMeans": ["phone_otp"]},
        ],
        "sessions": [
            {
                "id": "1",
                "userId": "arthur",
                "pastAuthenticationActions": [
                    {"methodId": "phone_otp", "validatedAt": str(int(now_ms - 10_000))},
                    {"methodId": "phone_biometry", "validatedAt": str(int(now_ms - 1_000_000))},
                ],
            },
            {"id": "2", "userId": "bigNoob", "pastAuthenticationActions": []},
            {"id": "3", "userId": "otherNoob", "pastAuthenticationActions": []},
        ],
    })


# =============================================================================
# State Manager
# =============================================================================

class StateManager:
    """
    Thread-safe owner of the current AuthModel.

    Attributes:
        _model: Current model (never handed out directly).
        _lock: Serializes mutations and snapshots.
        _repo: Optional write-through persistence.
    """

    def __init__(
        self,
        repo: Optional[ModelRepository] = None,
        initial: Optional[AuthModel] = None
    ) -> None:
        self._repo = repo
        self._lock: threading.Lock = threading.Lock()
        self._model: AuthModel = self._load_initial(initial)

    def _load_initial(self, initial: Optional[AuthModel]) -> AuthModel:
        if initial is not None:
            return initial.model_copy(deep=True)

        if self._repo is not None:
            try:
                stored = self._repo.get_model()
            except ModelStoreUnavailableError as e:
                # The unread stored model must never be overwritten
                logger.warning(f"{e}: using default model in memory only, persistence disabled")
                self._repo = None
                return build_default_model()

            if stored is not None:
                logger.info("Loaded ACR model from repository")
                return stored
            logger.info("No stored ACR model, seeding repository with default model")
            model = build_default_model()
            self._repo.save_model(model)
            return model

        return build_default_model()

    # -------------------------------------------------------------------------
    # Internal Helpers (call with lock held)
    # -------------------------------------------------------------------------

    def _commit(self) -> None:
        if self._repo is not None and not self._repo.save_model(self._model):
            logger.warning("ACR model change kept in memory only (repository write failed)")

    def _require_session(self, session_id: str) -> Session:
        session = self._model.find_session(session_id)
        if session is None:
            raise UnknownSessionError(f"Unknown session: {session_id}")
        return session

    def _require_user(self, user_id: str) -> User:
        user = self._model.find_user(user_id)
        if user is None:
            raise UnknownUserError(f"Unknown user: {user_id}")
        return user

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def snapshot(self) -> AuthModel:
        """Deep copy of the current model, safe to evaluate without locking."""
        with self._lock:
            return self._model.model_copy(deep=True)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def record_authentication(
        self,
        session_id: str,
        amr_id: str,
        now_ms: Optional[float] = None
    ) -> PastAuthAction:
        """Append {amr_id, validatedAt=now} to the session history."""
        with self._lock:
            session = self._require_session(session_id)
            user = self._require_user(session.user_id)
            if amr_id not in user.enrolled_means:
                raise MethodNotEnrolledError(f"User {user.id} is not enrolled in {amr_id}")

            if now_ms is None:
                now_ms = time.time() * 1000.0
            action = PastAuthAction(method_id=amr_id, validated_at=str(int(now_ms)))
            session.past_authentication_actions.append(action)
            self._commit()

        logger.info(f"Recorded {amr_id} on session {session_id}")
        return action

    def enroll(self, user_id: str, amr_id: str) -> None:
        """Add a catalog method to the user's enrollments (idempotent)."""
        with self._lock:
            user = self._require_user(user_id)
            if all(amr.id != amr_id for amr in self._model.amrs):
                raise UnknownMethodError(f"Unknown AMR: {amr_id}")
            if amr_id in user.enrolled_means:
                return
            user.enrolled_means.append(amr_id)
            self._commit()

        logger.info(f"Enrolled user {user_id} in {amr_id}")

    def unenroll(self, user_id: str, amr_id: str) -> None:
        """Remove a method from the user's enrollments (idempotent)."""
        with self._lock:
            user = self._require_user(user_id)
            if amr_id not in user.enrolled_means:
                return
            user.enrolled_means = [means for means in user.enrolled_means if means != amr_id]
            self._commit()

        logger.info(f"Unenrolled user {user_id} from {amr_id}")

    def revoke(self, session_id: str, index: int) -> PastAuthAction:
        """Remove the past action at `index` from the session history."""
        with self._lock:
            session = self._require_session(session_id)
            history = session.past_authentication_actions
            if index < 0 or index >= len(history):
                raise UnknownActionError(
                    f"Session {session_id} has no past action at position {index}"
                )
            removed = history.pop(index)
            self._commit()

        logger.info(f"Revoked {removed.method_id} at position {index} on session {session_id}")
        return removed

    def replace_model(self, model: AuthModel) -> None:
        """Replace the whole model (already validated)."""
        with self._lock:
            self._model = model.model_copy(deep=True)
            self._commit()

        logger.info(
            f"Replaced ACR model ({len(model.amrs)} AMRs, {len(model.acr)} ACRs, "
            f"{len(model.users)} users, {len(model.sessions)} sessions)"
        )

    def reset(self, now_ms: Optional[float] = None) -> None:
        """Restore the default model."""
        with self._lock:
            self._model = build_default_model(now_ms)
            self._commit()

        logger.info("Reset ACR model to defaults")
