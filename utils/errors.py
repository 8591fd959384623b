"""
Exception types raised while fetching and polling URLs.
"""


class URLCopyError(IOError):
    """Base class for I/O failures while talking to a remote resource."""


class URLConnectionError(URLCopyError):
    """The URL is malformed or the transport could not be opened."""


class TransferError(URLCopyError):
    """Reading the response body or writing it to the workspace failed."""


class TimestampQueryError(URLCopyError):
    """The last-modified value of a URL could not be read during a poll."""


class LedgerSealedError(RuntimeError):
    """A sealed TimestampLedger was modified."""


class LedgerAlreadyAttachedError(RuntimeError):
    """A build record already carries a TimestampLedger."""
