class TarError(Exception):
    """Base class of all archive decoding errors."""


class SequenceError(TarError):
    def __init__(self, reason: str, remaining: int = 0) -> None:
        super().__init__()
        self._reason = reason
        self._remaining = remaining

    @property
    def remaining(self) -> int:
        return self._remaining

    def __str__(self) -> str:
        return self._reason

    def __repr__(self) -> str:
        return f"SequenceError({self._reason!r}, {self._remaining!r})"


class TruncatedArchiveError(TarError):
    def __init__(self, what: str, wanted: int, got: int) -> None:
        super().__init__()
        self._what = what
        self._wanted = wanted
        self._got = got

    @property
    def wanted(self) -> int:
        return self._wanted

    @property
    def got(self) -> int:
        return self._got

    def __str__(self) -> str:
        return f"truncated archive: wanted {self._wanted} bytes of {self._what}, got {self._got}"

    def __repr__(self) -> str:
        return f"TruncatedArchiveError({self._what!r}, {self._wanted!r}, {self._got!r})"


class CorruptArchiveError(TarError):
    def __init__(self, reason: str) -> None:
        super().__init__()
        self._reason = reason

    def __str__(self) -> str:
        return f"corrupt archive: {self._reason}"

    def __repr__(self) -> str:
        return f"CorruptArchiveError({self._reason!r})"


class ChecksumError(TarError):
    def __init__(self, stored: int | None, computed: int) -> None:
        super().__init__()
        self._stored = stored
        self._computed = computed

    @property
    def stored(self) -> int | None:
        return self._stored

    @property
    def computed(self) -> int:
        return self._computed

    def __str__(self) -> str:
        stored = "unparsable" if self._stored is None else f"{self._stored:o}"
        return f"header checksum mismatch: stored {stored}, computed {self._computed:o}"

    def __repr__(self) -> str:
        return f"ChecksumError({self._stored!r}, {self._computed!r})"
