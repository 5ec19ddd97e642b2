from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Any, Callable


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SideEffectOutcome:
    name: str
    ok: bool
    error: str | None = None
    value: Any = None


def run_best_effort(name: str, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> SideEffectOutcome:
    """Run a non-critical call, capturing its failure instead of raising it."""
    try:
        value = fn(*args, **kwargs)
    except Exception as exc:  # noqa: BLE001
        logger.warning("best_effort: %s failed error=%s", name, exc)
        return SideEffectOutcome(name=name, ok=False, error=str(exc))
    return SideEffectOutcome(name=name, ok=True, value=value)
