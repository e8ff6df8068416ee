"""Number, duration and size formatting for results."""

from rich.filesize import decimal

# (suffix, nanoseconds) from largest to smallest
_DURATION_UNITS = (
    ("h", 3_600_000_000_000),
    ("m", 60_000_000_000),
    ("s", 1_000_000_000),
    ("ms", 1_000_000),
    ("us", 1_000),
    ("ns", 1),
)


class Formatter:
    """Renders raw measurements either exactly or for humans.

    Exact mode prints integers with a thousands delimiter (``1,234,567ns``).
    Human-readable mode prints the two most significant duration units
    (``1ms 234us``) and decimal size prefixes (``8.0 MB``).
    """

    def __init__(self, human_readable: bool = False, delimiter: str | None = ","):
        self.human_readable = human_readable
        self.delimiter = delimiter or ""

    def format_number(self, value: int) -> str:
        """Integer with the configured thousands delimiter."""
        return f"{value:,}".replace(",", self.delimiter)

    def format_duration(self, nanoseconds: float) -> str:
        """Format a duration given in nanoseconds."""
        ns = int(round(nanoseconds))
        if not self.human_readable:
            return f"{self.format_number(ns)}ns"
        if ns == 0:
            return "0s"

        parts = []
        remaining = ns
        for suffix, size in _DURATION_UNITS:
            amount, remaining = divmod(remaining, size)
            if amount:
                parts.append(f"{amount}{suffix}")
        return " ".join(parts[:2])

    def format_seconds(self, seconds: float) -> str:
        """Format a duration given in seconds."""
        return self.format_duration(seconds * 1_000_000_000)

    def format_size(self, size: int) -> str:
        """Format a byte count."""
        if not self.human_readable:
            return f"{self.format_number(int(size))} B"
        return decimal(int(size))

    def format_speed(self, bytes_per_second: float) -> str:
        """Format a throughput in bytes per second."""
        return f"{self.format_size(int(bytes_per_second))}/s"
