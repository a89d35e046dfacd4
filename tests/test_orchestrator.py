"""
Orchestrator Tests

Tests the evaluator facade and AcrOrchestrator:
- Lookup errors raised before any search
- OK / authentication required decisions on the default model
- Single "now" sampling, determinism and monotonicity
- Fail-closed behaviour on search budget exhaustion
"""

import pytest
from unittest.mock import MagicMock

from core.exceptions import UnknownPolicyError, UnknownSessionError, UnknownUserError
from core.orchestrator import AcrOrchestrator, evaluate
from core.schemas.inputs import AuthModel, EvaluatePayload, PastAuthAction
from core.schemas.outputs import AcrStatus
from core.state_manager import StateManager


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def store(default_model):
    return StateManager(initial=default_model)


@pytest.fixture
def orchestrator(store, now_ms):
    return AcrOrchestrator(state=store, clock=lambda: now_ms)


# =============================================================================
# Lookup Errors
# =============================================================================

class TestLookupErrors:
    """Unknown session, user and policy fail fast."""
    
    def test_unknown_session(self, default_model, now_ms):
        with pytest.raises(UnknownSessionError, match="42"):
            evaluate(default_model, "42", "normal", now_ms=now_ms)
    
    def test_unknown_user(self, default_model, now_ms):
        data = default_model.to_dict()
        data["sessions"].append({"id": "ghost", "userId": "nobody", "pastAuthenticationActions": []})
        model = AuthModel.model_validate(data)
        
        with pytest.raises(UnknownUserError, match="nobody"):
            evaluate(model, "ghost", "normal", now_ms=now_ms)
    
    def test_unknown_policy_raised_before_search(self, default_model, now_ms):
        enumerator = MagicMock()
        with pytest.raises(UnknownPolicyError):
            evaluate(default_model, "2", "eidas_high", now_ms=now_ms, enumerator=enumerator)
        enumerator.enumerate.assert_not_called()
    
    def test_session_checked_before_policy(self, default_model, now_ms):
        with pytest.raises(UnknownSessionError):
            evaluate(default_model, "42", "eidas_high", now_ms=now_ms)


# =============================================================================
# Decisions
# =============================================================================

class TestDecisions:
    """Default model scenarios."""
    
    def test_fresh_single_factor_is_ok_for_normal(self, default_model, now_ms):
        decision = evaluate(default_model, "1", "normal", now_ms=now_ms)
        
        assert decision.status == AcrStatus.OK
        assert decision.possible_action_sets is None
        assert decision.missing_enrollments == ["mail_otp"]
        assert decision.to_dict() == {"status": "OK", "missingEnrollments": ["mail_otp"]}
    
    def test_ok_never_runs_the_search(self, default_model, now_ms):
        enumerator = MagicMock()
        decision = evaluate(default_model, "1", "normal", now_ms=now_ms, enumerator=enumerator)
        assert decision.is_ok()
        enumerator.enumerate.assert_not_called()
    
    def test_strong_requires_second_factor_or_fresh_biometry(self, default_model, now_ms):
        decision = evaluate(default_model, "1", "strong", now_ms=now_ms)
        
        assert decision.status == AcrStatus.AUTHENTICATION_REQUIRED
        assert ["password"] in decision.possible_action_sets
        assert ["phone_biometry"] in decision.possible_action_sets
        assert decision.to_dict() == {
            "status": "authentication required",
            "possibleActionSets": [["password"], ["phone_biometry"]],
            "missingEnrollments": ["mail_otp"],
        }
    
    def test_structural_gap(self, make_model, now_ms):
        """No enrolled method of any required type: no sets, missing enrollments."""
        model = make_model(enrolled=[])
        decision = evaluate(model, "s1", "normal", now_ms=now_ms)
        
        assert decision.status == AcrStatus.AUTHENTICATION_REQUIRED
        assert decision.possible_action_sets == []
        assert decision.missing_enrollments == ["phone_otp", "password", "phone_biometry", "mail_otp"]
    
    def test_blocked_options_for_other_noob(self, default_model, now_ms):
        decision = evaluate(default_model, "3", "strong", now_ms=now_ms)
        assert decision.possible_action_sets == []
        assert decision.missing_enrollments == ["password", "phone_biometry", "mail_otp"]
    
    def test_evaluate_does_not_mutate_model(self, default_model, now_ms):
        before = default_model.to_dict()
        evaluate(default_model, "1", "strong", now_ms=now_ms)
        assert default_model.to_dict() == before


# =============================================================================
# Properties
# =============================================================================

class TestProperties:
    """Determinism, monotonicity and freshness over time."""
    
    def test_deterministic(self, default_model, now_ms):
        for session_id in ("1", "2", "3"):
            for acr in ("normal", "strong"):
                first = evaluate(default_model, session_id, acr, now_ms=now_ms)
                second = evaluate(default_model, session_id, acr, now_ms=now_ms)
                assert first == second
    
    def test_adding_history_never_revokes_ok(self, default_model, now_ms):
        """Monotonicity: a new past action cannot turn OK into required."""
        for amr in default_model.amrs:
            for acr in default_model.acr:
                for seconds_ago in (0, 200, 5000):
                    before = evaluate(default_model, "1", acr, now_ms=now_ms)
                    
                    extended = default_model.model_copy(deep=True)
                    extended.find_session("1").past_authentication_actions.append(
                        PastAuthAction(method_id=amr.id, validated_at=str(now_ms - seconds_ago * 1000))
                    )
                    after = evaluate(extended, "1", acr, now_ms=now_ms)
                    
                    if before.is_ok():
                        assert after.is_ok()
    
    def test_fresh_biometry_satisfies_strong(self, default_model, now_ms):
        model = default_model.model_copy(deep=True)
        model.find_session("2").past_authentication_actions.append(
            PastAuthAction(method_id="phone_biometry", validated_at=str(now_ms))
        )
        assert evaluate(model, "2", "strong", now_ms=now_ms).is_ok()
    
    def test_history_expires(self, default_model, now_ms):
        """3601 seconds later, neither past action satisfies normal."""
        later = now_ms + 3601 * 1000
        decision = evaluate(default_model, "1", "normal", now_ms=later)
        assert decision.status == AcrStatus.AUTHENTICATION_REQUIRED


# =============================================================================
# AcrOrchestrator
# =============================================================================

class TestAcrOrchestrator:
    """Test the stateful wrapper around the facade."""
    
    def test_clock_sampled_once_per_call(self, store, now_ms):
        clock = MagicMock(return_value=now_ms)
        orchestrator = AcrOrchestrator(state=store, clock=clock)
        
        orchestrator.evaluate(EvaluatePayload(session_id="1", acr="strong"))
        assert clock.call_count == 1
    
    def test_mutation_visible_on_next_call(self, orchestrator, store, now_ms):
        payload = EvaluatePayload(session_id="1", acr="strong")
        first = orchestrator.evaluate(payload)
        assert not first.is_ok()
        
        store.record_authentication("1", "password", now_ms=now_ms)
        second = orchestrator.evaluate(payload)
        
        assert second.is_ok()
        assert first.possible_action_sets == [["password"], ["phone_biometry"]]
    
    def test_budget_exhaustion_fails_closed(self, store, now_ms):
        orchestrator = AcrOrchestrator(state=store, search_budget=1, clock=lambda: now_ms)
        decision = orchestrator.evaluate(EvaluatePayload(session_id="2", acr="strong"))
        
        assert decision.status == AcrStatus.AUTHENTICATION_REQUIRED
        assert decision.possible_action_sets == []
        assert decision.missing_enrollments == ["mail_otp"]
    
    def test_required_patterns(self, orchestrator):
        response = orchestrator.required_patterns("normal")
        assert response.acr == "normal"
        assert response.patterns == [["phone_otp"], ["password"], ["mail_otp"], ["phone_biometry"]]
    
    def test_required_patterns_unknown(self, orchestrator):
        with pytest.raises(UnknownPolicyError):
            orchestrator.required_patterns("nope")
