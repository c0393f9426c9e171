"""RsiRadar — exception hierarchy."""


class RsiRadarError(Exception):
    """Base class for all RsiRadar errors."""


class MarketDataError(RsiRadarError):
    """Raised when the market-data provider is unreachable or misbehaves.

    Timeouts, transport failures and non-2xx HTTP responses all surface as
    this error.  Recognised Binance business errors (e.g. an unknown symbol)
    do not raise; they are returned as an empty result instead.
    """


class ScanAbortedError(RsiRadarError):
    """Raised when a scan cannot start (no symbols could be listed)."""
