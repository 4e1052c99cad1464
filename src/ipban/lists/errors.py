"""Error kinds raised while building allow/deny lists."""


class ListError(Exception):
    """Base class for list construction errors."""


class PatternError(ListError, ValueError):
    """Pattern text does not compile.

    Always fatal for the list being built: it is an authoring mistake in
    the configuration, not a transient condition.
    """

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"invalid pattern {source!r}: {reason}")


class DnsLookupError(ListError):
    """A host name could not be resolved.

    Never fatal: the normalizer drops the offending token and moves on.
    """

    def __init__(self, hostname: str, reason: str):
        self.hostname = hostname
        self.reason = reason
        super().__init__(f"cannot resolve {hostname!r}: {reason}")
