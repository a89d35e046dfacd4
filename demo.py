#!/usr/bin/env python3
"""
ACR Gate Console Demo

Prints the user-independent patterns of every ACR, then the decision for
every session against every ACR.

Usage:
    python demo.py                 # Built-in default model
    python demo.py my_model.json   # Model file in the JSON wire format

Past action times are shown in Europe/Paris local time.
"""

import json
import sys
import time
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from core.exceptions import AcrError
from core.models import parse_validated_at, required_patterns
from core.orchestrator import evaluate
from core.schemas.inputs import AuthModel
from core.state_manager import build_default_model


DISPLAY_TIMEZONE = ZoneInfo("Europe/Paris")


# =============================================================================
# Formatting
# =============================================================================

def format_paris_datetime(validated_at) -> str:
    """Render a stored validatedAt as dd/mm/yyyy HH:MM:SS in Paris time."""
    millis = parse_validated_at(validated_at)
    if millis is None:
        return str(validated_at)
    try:
        moment = datetime.fromtimestamp(millis / 1000.0, tz=DISPLAY_TIMEZONE)
    except (OverflowError, OSError, ValueError):
        # Parsable but outside the calendar range datetime supports
        return str(validated_at)
    return moment.strftime("%d/%m/%Y %H:%M:%S")


def load_model(argv) -> AuthModel:
    if len(argv) < 2:
        return build_default_model()

    path = Path(argv[1])
    try:
        return AuthModel.model_validate_json(path.read_text(encoding="utf-8"))
    except OSError as e:
        print(f"❌ Cannot read model file {path}: {e}")
        sys.exit(1)
    except ValidationError as e:
        print(f"❌ Invalid model in {path}:\n{e}")
        sys.exit(1)


# =============================================================================
# Demo
# =============================================================================

def main(argv) -> int:
    model = load_model(argv)
    now_ms = time.time() * 1000.0

    print("=" * 60)
    print("Required authentication patterns")
    print("=" * 60)
    for acr_name in model.acr:
        print(f"  {acr_name}: {required_patterns(model, acr_name)}")

    print()
    print("=" * 60)
    print("Session decisions")
    print("=" * 60)
    for session in model.sessions:
        print(f"\nSession {session.id} (user {session.user_id})")
        for action in session.past_authentication_actions:
            print(f"  - {action.method_id} validated {format_paris_datetime(action.validated_at)}")

        for acr_name in model.acr:
            try:
                decision = evaluate(model, session.id, acr_name, now_ms=now_ms)
            except AcrError as e:
                print(f"  {acr_name}: ❌ {e}")
                continue
            print(f"  {acr_name}: {json.dumps(decision.to_dict())}")

    print(f"\nnow(ms): {int(now_ms)} ({format_paris_datetime(now_ms)})")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv))
