from .errors import (
    ChecksumError,
    CorruptArchiveError,
    SequenceError,
    TarError,
    TruncatedArchiveError,
)
from .header import (
    BLOCK_SIZE,
    HEADER_SIZE,
    EntryType,
    TarEntryInfo,
    UstarHeader,
    decode_header,
    is_all_zero,
    is_path_separator,
    path_ends_in_separator,
)
from .reader import ReaderState, TarReader

__all__ = [
    "BLOCK_SIZE",
    "HEADER_SIZE",
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
    "decode_header",
    "is_all_zero",
    "is_path_separator",
    "path_ends_in_separator",
]
