# batch_table_upgrade/debug.py

"""
Logging utilities for the batch table upgrade tools.

Logger keeps timestamped lines in memory so a run can be reported after the
fact (the CLI writes them beside its diagnostics JSON as a .log file), and
optionally echoes each line to the console. Diagnostics forwards its
WARN/ERROR events here.
"""

import datetime


class Logger(object):
    """Timestamped in-memory logger with optional console echo."""

    LEVELS = ("INFO", "WARN", "ERROR")

    def __init__(self, enabled=True, prefix=None):
        """
        Args:
            enabled (bool): Print each line to the console as well as storing it.
            prefix (str): Optional tag inserted after the level, e.g. the input file name.
        """
        self.enabled = enabled
        self.prefix = prefix
        self.lines = []
        self.level_counts = dict((lvl, 0) for lvl in self.LEVELS)

    def _write(self, level, msg):
        ts = datetime.datetime.now().strftime("%H:%M:%S")
        if self.prefix:
            line = "[{0}] {1}: [{2}] {3}".format(ts, level, self.prefix, msg)
        else:
            line = "[{0}] {1}: {2}".format(ts, level, msg)
        self.lines.append(line)
        self.level_counts[level] = self.level_counts.get(level, 0) + 1
        if self.enabled:
            try:
                print(line)
            except Exception:
                pass

    def info(self, msg):
        self._write("INFO", msg)

    def warn(self, msg):
        self._write("WARN", msg)

    def error(self, msg):
        self._write("ERROR", msg)

    def dump(self):
        """Return a copy of all accumulated log lines."""
        return list(self.lines)

    def write(self, path):
        """Write accumulated lines to a text file (one per line)."""
        with open(path, "w", encoding="utf-8") as f:
            for line in self.lines:
                f.write(line + "\n")
