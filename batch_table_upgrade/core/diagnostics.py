# batch_table_upgrade/core/diagnostics.py

LEVEL_DEBUG = "DEBUG"
LEVEL_INFO = "INFO"
LEVEL_WARN = "WARN"
LEVEL_ERROR = "ERROR"


def _exc_to_str(e):
    try:
        return str(e)
    except Exception:
        return "<unstringifiable exception>"


class Diagnostics(object):
    """
    Structured diagnostics recorder for the upgrade pipeline.

    - Bounded event storage
    - Aggregated counts
    - JSON-safe output
    - Optional echo of WARN/ERROR events into a Logger

    Recoverable format problems (missing BATCH_LENGTH, malformed batch table
    JSON, unsupported property shapes) are reported here instead of raised.
    """

    def __init__(self, max_events=200, logger=None):
        self.max_events = max_events
        self.logger = logger

        self.events = []
        self.counts = {}
        self.dropped_events = 0

    def _count_key(self, level, phase, callsite, exc_type):
        return "{}|{}|{}|{}".format(level, phase, callsite, exc_type or "")

    def _echo(self, payload):
        if self.logger is None:
            return
        level = payload.get("level")
        line = "{}.{}: {}".format(payload.get("phase"), payload.get("callsite"), payload.get("message"))
        try:
            if level == LEVEL_ERROR:
                self.logger.error(line)
            elif level == LEVEL_WARN:
                self.logger.warn(line)
        except Exception:
            # Diagnostics must never throw.
            pass

    def _record(self, payload):
        key = self._count_key(
            payload.get("level"),
            payload.get("phase"),
            payload.get("callsite"),
            payload.get("exc_type"),
        )
        self.counts[key] = self.counts.get(key, 0) + 1
        self._echo(payload)

        if len(self.events) >= self.max_events:
            self.dropped_events += 1
            return None

        self.events.append(payload)
        return len(self.events) - 1

    def _payload(self, level, phase, callsite, message, prop=None, extra=None, exc=None):
        return {
            "level": level,
            "phase": phase,
            "callsite": callsite,
            "message": message,
            "exc_type": type(exc).__name__ if exc is not None else None,
            "exc_message": _exc_to_str(exc) if exc is not None else None,
            "property": prop,
            "extra": extra or {},
        }

    def debug(self, phase, callsite, message, prop=None, extra=None):
        self._record(self._payload(LEVEL_DEBUG, phase, callsite, message, prop, extra))

    def info(self, phase, callsite, message, prop=None, extra=None):
        self._record(self._payload(LEVEL_INFO, phase, callsite, message, prop, extra))

    def warn(self, phase, callsite, message, prop=None, extra=None):
        self._record(self._payload(LEVEL_WARN, phase, callsite, message, prop, extra))

    def error(self, phase, callsite, message, exc=None, prop=None, extra=None):
        self._record(self._payload(LEVEL_ERROR, phase, callsite, message, prop, extra, exc))

    def by_level(self, level):
        return [ev for ev in self.events if ev.get("level") == level]

    def warnings(self):
        return self.by_level(LEVEL_WARN)

    def errors(self):
        return self.by_level(LEVEL_ERROR)

    def has_errors(self):
        return any(k.startswith(LEVEL_ERROR + "|") for k in self.counts)

    def to_dict(self):
        return {
            "max_events": self.max_events,
            "num_events": len(self.events),
            "dropped_events": self.dropped_events,
            "counts": dict(self.counts),
            "events": list(self.events),
        }
