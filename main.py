"""
ACR Gate API

FastAPI application exposing:
- POST /evaluate → decision record
- GET /acr/{acr}/patterns → user-independent method patterns
- GET/PUT /model, POST /model/reset → editable model
- POST/DELETE /sessions/{id}/actions → record / revoke authentications
- POST/DELETE /users/{id}/enrollments → enroll / unenroll

Configuration (environment, optionally from .env):
- ACR_STORE_BACKEND: "memory" (default) or "redis"
- ACR_SEARCH_BUDGET: action search node budget
- ACR_MODEL_NAMESPACE: Redis key namespace for the model
"""

from contextlib import asynccontextmanager
import logging
import os
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import Response

from core.exceptions import (
    MethodNotEnrolledError,
    UnknownActionError,
    UnknownMethodError,
    UnknownPolicyError,
    UnknownSessionError,
    UnknownUserError,
)
from core.orchestrator import AcrOrchestrator
from core.schemas.inputs import (
    AuthModel,
    EnrollPayload,
    EvaluatePayload,
    RecordActionPayload,
)
from core.schemas.outputs import AcrDecision, RequiredPatternsResponse
from core.state_manager import StateManager


load_dotenv()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

NOT_FOUND_ERRORS = (
    UnknownSessionError,
    UnknownUserError,
    UnknownPolicyError,
    UnknownMethodError,
    UnknownActionError,
)


# =============================================================================
# Application State
# =============================================================================

class AppState:
    """Application state container."""
    orchestrator: Optional[AcrOrchestrator] = None
    store: Optional[StateManager] = None


state = AppState()


def build_state_manager() -> StateManager:
    """Create the StateManager for the configured backend."""
    backend = os.getenv("ACR_STORE_BACKEND", "memory").lower()
    if backend == "redis":
        from persistence.model_repository import ModelRepository
        namespace = os.getenv("ACR_MODEL_NAMESPACE", "default")
        logger.info(f"Using Redis model store (namespace {namespace!r})")
        return StateManager(repo=ModelRepository(namespace=namespace))
    if backend != "memory":
        logger.warning(f"Unknown ACR_STORE_BACKEND {backend!r}, using in-memory store")
    return StateManager()


def read_search_budget() -> Optional[int]:
    raw = os.getenv("ACR_SEARCH_BUDGET")
    if not raw:
        return None
    try:
        budget = int(raw)
    except ValueError:
        budget = 0
    if budget <= 0:
        logger.warning(f"Ignoring invalid ACR_SEARCH_BUDGET {raw!r}")
        return None
    return budget


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    logger.info("Starting ACR Gate API...")
    state.store = build_state_manager()
    state.orchestrator = AcrOrchestrator(state=state.store, search_budget=read_search_budget())
    logger.info("ACR Gate ready")
    
    yield
    
    # Shutdown
    logger.info("Shutting down ACR Gate API...")


# =============================================================================
# FastAPI Application
# =============================================================================

app = FastAPI(
    title="ACR Gate",
    description="Authentication assurance level (ACR) policy evaluator",
    version=API_VERSION,
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _not_found(e: Exception) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))


# =============================================================================
# Health Check
# =============================================================================

@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": API_VERSION}


@app.get("/", include_in_schema=False)
async def root():
    """Redirect root to API documentation."""
    from fastapi.responses import RedirectResponse
    return RedirectResponse(url="/docs")


# =============================================================================
# Evaluation Endpoints
# =============================================================================

@app.post("/evaluate", response_model=AcrDecision, response_model_exclude_none=True)
async def evaluate(payload: EvaluatePayload):
    """
    Evaluate a session against a requested ACR.
    
    - OK when history already satisfies one option
    - Otherwise lists the possible sets of new authentications
    - Always lists missing enrollments
    """
    try:
        return state.orchestrator.evaluate(payload)
    except NOT_FOUND_ERRORS as e:
        raise _not_found(e)
    except Exception as e:
        logger.error(f"Evaluate error: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal error during evaluation"
        )


@app.get("/acr/{acr}/patterns", response_model=RequiredPatternsResponse)
async def acr_patterns(acr: str):
    """List every method pattern able to satisfy an ACR, ignoring users."""
    try:
        return state.orchestrator.required_patterns(acr)
    except NOT_FOUND_ERRORS as e:
        raise _not_found(e)


# =============================================================================
# Model Endpoints
# =============================================================================

@app.get("/model")
async def get_model() -> Dict[str, Any]:
    """Current model in the JSON wire format."""
    return state.store.snapshot().to_dict()


@app.put("/model")
async def replace_model(model: AuthModel) -> Dict[str, Any]:
    """Replace the whole model (validated before it is applied)."""
    state.store.replace_model(model)
    return state.store.snapshot().to_dict()


@app.post("/model/reset")
async def reset_model() -> Dict[str, Any]:
    """Restore the default model."""
    state.store.reset()
    return state.store.snapshot().to_dict()


# =============================================================================
# Session & Enrollment Mutations
# =============================================================================

@app.post("/sessions/{session_id}/actions", status_code=status.HTTP_201_CREATED)
async def record_action(session_id: str, payload: RecordActionPayload) -> Dict[str, Any]:
    """Record that the session's user just authenticated with an AMR."""
    try:
        action = state.store.record_authentication(session_id, payload.amr_id)
    except NOT_FOUND_ERRORS as e:
        raise _not_found(e)
    except MethodNotEnrolledError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    return action.model_dump(mode="json", by_alias=True)


@app.delete("/sessions/{session_id}/actions/{index}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_action(session_id: str, index: int):
    """Remove one past action from a session's history by position."""
    try:
        state.store.revoke(session_id, index)
    except NOT_FOUND_ERRORS as e:
        raise _not_found(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.post("/users/{user_id}/enrollments", status_code=status.HTTP_204_NO_CONTENT)
async def enroll(user_id: str, payload: EnrollPayload):
    """Enroll a user in a catalog method."""
    try:
        state.store.enroll(user_id, payload.amr_id)
    except NOT_FOUND_ERRORS as e:
        raise _not_found(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@app.delete("/users/{user_id}/enrollments/{amr_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unenroll(user_id: str, amr_id: str):
    """Remove a method from a user's enrollments."""
    try:
        state.store.unenroll(user_id, amr_id)
    except NOT_FOUND_ERRORS as e:
        raise _not_found(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Entry Point
# =============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
