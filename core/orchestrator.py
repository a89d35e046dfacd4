"""
ACR Gate Orchestrator

Evaluator facade: one decision per (session, ACR) call.

Evaluation Pipeline:
    Lookup (session → user → policy) → Satisfaction → Enumeration → Decision

Guarantees:
- Lookup errors are raised before any search starts
- "Now" is sampled exactly once per call and threaded through every check
- Inputs are never mutated; the orchestrator evaluates a snapshot
- Search budget exhaustion fails closed (authentication required, no sets)
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Optional

from core.exceptions import (
    SearchBudgetExceededError,
    UnknownSessionError,
    UnknownUserError,
)
from core.models import (
    ActionEnumerator,
    is_satisfied,
    missing_enrollments,
    required_patterns,
    resolve_policy,
)
from core.schemas.inputs import AuthModel, EvaluatePayload
from core.schemas.outputs import AcrDecision, AcrStatus, RequiredPatternsResponse
from core.state_manager import StateManager


logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.time() * 1000.0


# =============================================================================
# Facade
# =============================================================================

def evaluate(
    model: AuthModel,
    session_id: str,
    acr_name: str,
    now_ms: Optional[float] = None,
    enumerator: Optional[ActionEnumerator] = None
) -> AcrDecision:
    """
    Decide whether a session satisfies an ACR.

    Args:
        model: Catalog, users and sessions to evaluate against.
        session_id: Session whose history is checked.
        acr_name: Requested ACR policy name.
        now_ms: Evaluation instant in epoch milliseconds (sampled if None).
        enumerator: Action enumerator (default budget if None).

    Returns:
        AcrDecision with OK, or "authentication required" plus the
        possible action sets.

    Raises:
        UnknownSessionError, UnknownUserError, UnknownPolicyError
    """
    session = model.find_session(session_id)
    if session is None:
        raise UnknownSessionError(f"Unknown session: {session_id}")

    user = model.find_user(session.user_id)
    if user is None:
        raise UnknownUserError(f"Unknown user: {session.user_id}")

    resolve_policy(model, acr_name)

    if now_ms is None:
        now_ms = _now_ms()

    missing = missing_enrollments(model, user, acr_name)

    if is_satisfied(model, user, session, acr_name, now_ms):
        return AcrDecision(status=AcrStatus.OK, missing_enrollments=missing)

    enumerator = enumerator or ActionEnumerator()
    try:
        action_sets = enumerator.enumerate(model, user, session, acr_name, now_ms)
    except SearchBudgetExceededError as e:
        logger.warning(f"{e}: failing closed for session {session_id}, ACR {acr_name!r}")
        action_sets = []

    return AcrDecision(
        status=AcrStatus.AUTHENTICATION_REQUIRED,
        possible_action_sets=action_sets,
        missing_enrollments=missing,
    )


# =============================================================================
# Orchestrator
# =============================================================================

class AcrOrchestrator:
    """
    Evaluates requests against the current StateManager snapshot.

    The clock is injectable so callers (and tests) control "now".
    """

    def __init__(
        self,
        state: Optional[StateManager] = None,
        search_budget: Optional[int] = None,
        clock: Optional[Callable[[], float]] = None
    ) -> None:
        """Initialize orchestrator."""
        self.state = state or StateManager()
        self.enumerator = ActionEnumerator(budget=search_budget)
        self.clock = clock or _now_ms

        logger.info(f"AcrOrchestrator initialized (search budget {self.enumerator.budget})")

    def evaluate(self, payload: EvaluatePayload) -> AcrDecision:
        """Evaluate one session against one ACR."""
        model = self.state.snapshot()
        decision = evaluate(
            model,
            payload.session_id,
            payload.acr,
            now_ms=self.clock(),
            enumerator=self.enumerator,
        )

        logger.info(
            f"Session {payload.session_id} → ACR {payload.acr!r}: {decision.status.value} "
            f"({len(decision.possible_action_sets or [])} action sets, "
            f"{len(decision.missing_enrollments)} missing enrollments)"
        )
        return decision

    def required_patterns(self, acr_name: str) -> RequiredPatternsResponse:
        """User-independent method patterns for an ACR."""
        model = self.state.snapshot()
        return RequiredPatternsResponse(acr=acr_name, patterns=required_patterns(model, acr_name))
