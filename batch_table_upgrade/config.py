"""
Configuration for the batch table upgrade.

Defines the Config class holding the knobs that change how legacy batch
tables are upgraded and how the resulting glTF is written.
"""


class Config:
    """Configuration for the batch table upgrade pipeline.

    Attributes:
        strict_array_length (bool): Arrays longer than BATCH_LENGTH are reported
            with a WARN diagnostic and produce no buffer (default: True).
            False => only the first BATCH_LENGTH elements are packed.
        max_diagnostic_events (int): Event cap for Diagnostics (default: 200)
        embed_buffers (bool): Write buffers as base64 data URIs in glTF JSON
            output (default: True). False => only byteLength is written.
        echo_log (bool): Print log lines to the console (default: False)

    Commentary:
        ✔ Shorter-than-count arrays always take the string path regardless of strict_array_length
        ⚠ strict_array_length=False silently truncates; keep it True unless the producer is known to pad

    Example:
        >>> cfg = Config()
        >>> cfg.strict_array_length
        True
        >>> cfg.max_diagnostic_events
        200
    """

    def __init__(
        self,
        strict_array_length=True,
        max_diagnostic_events=200,
        embed_buffers=True,
        echo_log=False,
    ):
        self.strict_array_length = bool(strict_array_length)
        self.max_diagnostic_events = int(max_diagnostic_events)
        self.embed_buffers = bool(embed_buffers)
        self.echo_log = bool(echo_log)

        if self.max_diagnostic_events < 0:
            raise ValueError("max_diagnostic_events must be non-negative")

    def to_dict(self):
        return {
            "strict_array_length": self.strict_array_length,
            "max_diagnostic_events": self.max_diagnostic_events,
            "embed_buffers": self.embed_buffers,
            "echo_log": self.echo_log,
        }

    def __repr__(self):
        return (
            "Config(strict_array_length={}, max_diagnostic_events={}, "
            "embed_buffers={}, echo_log={})".format(
                self.strict_array_length,
                self.max_diagnostic_events,
                self.embed_buffers,
                self.echo_log,
            )
        )
