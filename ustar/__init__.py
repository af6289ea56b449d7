from .archive import (
    ChecksumError,
    CorruptArchiveError,
    EntryType,
    ReaderState,
    SequenceError,
    TarEntryInfo,
    TarError,
    TarReader,
    TruncatedArchiveError,
    UstarHeader,
)

__all__ = [
    "ChecksumError",
    "CorruptArchiveError",
    "EntryType",
    "ReaderState",
    "SequenceError",
    "TarEntryInfo",
    "TarError",
    "TarReader",
    "TruncatedArchiveError",
    "UstarHeader",
]
