# batch_table_upgrade/core/safe_api.py

from typing import Any, Callable, Dict, Optional, TypeVar

T = TypeVar("T")


def safe_call(
    diag: Any,
    *,
    phase: str,
    callsite: str,
    fn: Callable[[], T],
    default: T,
    context: Optional[Dict[str, Any]] = None,
    policy: str = "default",  # "default" | "raise"
) -> T:
    """
    Run an optional step (report output, log file) without letting it fail the run.

    policy:
      - "default": record an ERROR event, return default
      - "raise":   record an ERROR event, then re-raise
    """
    try:
        return fn()
    except Exception as e:
        if diag is not None:
            diag.error(
                phase=phase,
                callsite=callsite,
                message="{0} failed".format(callsite),
                exc=e,
                extra=dict(context or {}),
            )

        if policy == "raise":
            raise

        return default
