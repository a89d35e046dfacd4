"""
ACR Gate Core

Central module exports for the ACR policy evaluator.
"""

from core.orchestrator import AcrOrchestrator, evaluate
from core.state_manager import StateManager

__all__ = [
    "AcrOrchestrator",
    "StateManager",
    "evaluate",
]
