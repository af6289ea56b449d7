from contextlib import AbstractContextManager
import enum
import io
import os
from typing import (
    Any,
    BinaryIO,
    Callable,
    Final,
    Iterator,
    Protocol,
    TYPE_CHECKING,
)

if TYPE_CHECKING:
    from types import TracebackType

    from typing_extensions import Self

    from ..log import UstarLogger

from .errors import (
    ChecksumError,
    CorruptArchiveError,
    SequenceError,
    TarError,
    TruncatedArchiveError,
)
from .header import (
    BLOCK_SIZE,
    EntryType,
    TarEntryInfo,
    UstarHeader,
    compute_checksum,
    is_all_zero,
    stored_checksum,
)


class SupportsWrite(Protocol):
    def write(self, b: bytes, /) -> Any: ...


PayloadSource = Callable[[SupportsWrite], int]
EntryVisitor = Callable[[bool, str, "PayloadSource | None"], bool]


class ReaderState(enum.Enum):
    IDLE = "idle"
    ENTRY_OPEN = "entry-open"
    ENDED = "ended"
    FAILED = "failed"


EXTRACTABLE_FILE_TYPES: Final = frozenset(
    (EntryType.REGULAR, EntryType.CONTIGUOUS),
)


class NullSink:
    """Write sink that drops everything, for draining unwanted payloads."""

    def write(self, b: bytes, /) -> int:
        return len(b)


def padding_for(size: int) -> int:
    """Number of zero bytes following a payload of ``size`` bytes up to the
    next block boundary."""
    return -size % BLOCK_SIZE


def _probe_seekable(stream: object) -> bool:
    seekable = getattr(stream, "seekable", None)
    if seekable is None:
        return False
    try:
        return bool(seekable())
    except (OSError, ValueError):
        return False


class TarReader(AbstractContextManager["TarReader"]):
    """Sequential decoder of a USTAR archive.

    The reader takes ownership of ``stream`` and closes it on :meth:`close`.
    At most one entry is open at a time: after :meth:`advance` returns True
    the entry's payload must be fully consumed with :meth:`read_payload` or
    :meth:`copy_entry_to` before advancing again, unless ``skip_unread`` is
    given.

    Not safe for concurrent use.
    """

    def __init__(
        self,
        stream: BinaryIO,
        *,
        logger: "UstarLogger | None" = None,
        use_seek: bool = True,
        copy_bufsize: int = BLOCK_SIZE,
    ) -> None:
        if stream is None:
            raise ValueError("stream must not be None")
        if copy_bufsize <= 0 or copy_bufsize % BLOCK_SIZE != 0:
            raise ValueError(
                f"copy_bufsize must be a positive multiple of {BLOCK_SIZE}, got {copy_bufsize}"
            )

        self._stream = stream
        self._logger = logger
        self._can_seek = use_seek and _probe_seekable(stream)
        self._buf = bytearray(copy_bufsize)
        # skips must not clobber payload the caller has yet to consume from _buf
        self._discard = bytearray(copy_bufsize)
        self._header = UstarHeader()
        self._remaining = 0
        self._offset = 0
        self._state = ReaderState.IDLE
        self._closed = False

    def __enter__(self) -> "Self":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: "TracebackType | None",
    ) -> None:
        self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._stream.close()

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def header(self) -> UstarHeader:
        """The header of the current entry. Overwritten in place by every
        successful :meth:`advance`."""
        return self._header

    @property
    def state(self) -> ReaderState:
        return self._state

    @property
    def remaining_bytes_in_file(self) -> int:
        return self._remaining

    @property
    def offset(self) -> int:
        """Number of archive bytes consumed so far."""
        return self._offset

    @property
    def supports_seek(self) -> bool:
        return self._can_seek

    def _debug(self, msg: str) -> None:
        if self._logger is not None:
            self._logger.D(msg, _stack_offset_delta=1)

    def _check_open(self) -> None:
        if self._closed:
            raise ValueError("I/O operation on closed tar reader")

    # low-level stream access

    def _read_into(self, view: memoryview) -> int:
        """Fills ``view`` from the stream, retrying short reads. Returns the
        number of bytes read, which is less than ``len(view)`` only if the
        stream is exhausted."""
        wanted = len(view)
        total = 0
        readinto = getattr(self._stream, "readinto", None)
        while total < wanted:
            if readinto is not None:
                n = readinto(view[total:])
            else:
                data = self._stream.read(wanted - total)
                n = len(data)
                view[total : total + n] = data
            if not n:
                break
            total += n

        self._offset += total
        return total

    def _skip(self, n: int, what: str) -> None:
        if n <= 0:
            return

        if self._can_seek:
            self._debug(f"seeking forward {n} bytes over {what}")
            self._stream.seek(n, os.SEEK_CUR)
            self._offset += n
            return

        self._debug(f"discarding {n} bytes of {what}")
        left = n
        view = memoryview(self._discard)
        while left > 0:
            chunk = min(left, len(view))
            got = self._read_into(view[:chunk])
            if got < chunk:
                raise TruncatedArchiveError(what, n, n - left + got)
            left -= got

    def _fail(self) -> None:
        self._state = ReaderState.FAILED

    # entry enumeration

    def advance(self, skip_unread: bool = False) -> bool:
        """Moves to the next entry.

        Returns False once the end-of-archive marker has been read. Raises
        :class:`SequenceError` if the current entry still has unread payload
        and ``skip_unread`` is False.
        """
        self._check_open()

        match self._state:
            case ReaderState.ENDED:
                return False
            case ReaderState.FAILED:
                raise SequenceError("cannot advance a reader after a decoding error")

        if self._remaining > 0 and not skip_unread:
            raise SequenceError(
                "cannot open next entry while previous entry's data is unread; "
                "pass skip_unread=True to discard it",
                self._remaining,
            )

        self._debug(f"tar stream position advance in: {self._offset}")
        try:
            return self._advance()
        except (TarError, OSError):
            self._fail()
            raise

    def _advance(self) -> bool:
        if self._remaining > 0:
            # the rest of the payload plus the padding after it
            n = self._remaining + padding_for(self._header.size)
            self._remaining = 0
            self._skip(n, "unread entry data")

        self._state = ReaderState.IDLE

        block = memoryview(self._header.buffer)
        got = self._read_into(block)
        if got < BLOCK_SIZE:
            raise TruncatedArchiveError("header", BLOCK_SIZE, got)

        if is_all_zero(block):
            got = self._read_into(block)
            if got < BLOCK_SIZE or not is_all_zero(block):
                raise CorruptArchiveError("expected terminating zero block")
            self._state = ReaderState.ENDED
            self._debug(f"tar stream position advance out (end): {self._offset}")
            return False

        if not self._header.update_from_bytes():
            raise ChecksumError(stored_checksum(block), compute_checksum(block))

        self._remaining = self._header.size
        self._state = ReaderState.ENTRY_OPEN
        self._debug(
            f"tar stream position advance out: {self._offset}, entry {self._header.file_name!r} of {self._remaining} bytes"
        )
        return True

    def iter_entries(self, skip_unread: bool = True) -> Iterator[TarEntryInfo]:
        """Lazily yields a snapshot of every remaining entry.

        The payload of the entry just yielded can be consumed before asking
        for the next one; by default whatever is left unread is skipped. The
        iteration cannot be restarted.
        """
        while self.advance(skip_unread):
            yield self._header.snapshot()

    # payload access

    def read_payload(self, buffer: bytearray | memoryview) -> int:
        """Reads the next chunk of the current entry's payload into ``buffer``.

        Returns the number of payload bytes delivered, or 0 once the entry is
        exhausted. When the entry is exhausted by this call, the padding up to
        the next block boundary is consumed as well.
        """
        self._check_open()
        if self._state == ReaderState.FAILED:
            raise SequenceError("cannot read from a reader after a decoding error")
        if self._remaining == 0:
            return 0

        view = memoryview(buffer)
        if len(view) == 0:
            raise ValueError("buffer must not be empty")

        to_read = min(self._remaining, len(view))
        try:
            got = self._read_into(view[:to_read])
            self._remaining -= got
            if got < to_read:
                raise TruncatedArchiveError("entry data", to_read, got)
            if self._remaining == 0:
                self._skip(padding_for(self._header.size), "entry padding")
        except (TarError, OSError):
            self._fail()
            raise

        return got

    def copy_entry_to(self, dest: SupportsWrite) -> int:
        """Copies what is left of the current entry's payload to ``dest``.
        Does not advance to the next entry."""
        total = 0
        view = memoryview(self._buf)
        while n := self.read_payload(view):
            dest.write(view[:n].tobytes())
            total += n
        return total

    def read_entry(self) -> bytes:
        """Returns what is left of the current entry's payload as bytes."""
        with io.BytesIO() as buf:
            self.copy_entry_to(buf)
            return buf.getvalue()

    def for_each_entry(self, visitor: EntryVisitor) -> None:
        """Calls ``visitor(is_directory, name, payload)`` for every entry until
        it returns False.

        ``payload`` is None for directories, and otherwise a function copying
        the entry's payload to a writable sink. A visitor that does not drain
        a file's payload makes the next step raise :class:`SequenceError`.
        """
        while self.advance(False):
            name = self._header.file_name
            if self._header.is_directory:
                if not visitor(True, name, None):
                    return
                continue

            if not visitor(False, name, self.copy_entry_to):
                return

    def extract_to(self, dest_root: str | os.PathLike[str]) -> None:
        """Writes every remaining entry below ``dest_root``.

        CAUTION: member names are used as-is. An archive holding absolute
        paths or ``..`` components can write outside ``dest_root``. Callers
        handling untrusted archives must use :meth:`for_each_entry` or
        :meth:`advance` and validate names themselves.

        Only directories and regular files are materialized. Links, device
        nodes, FIFOs, unknown entry types and members with an empty name are
        skipped.
        """
        root = os.fspath(dest_root)

        def _extract_one(
            is_directory: bool,
            name: str,
            payload: PayloadSource | None,
        ) -> bool:
            if not name:
                self._debug("skipping member with an empty name")
                if payload is not None:
                    payload(NullSink())
                return True

            path = root + os.sep + name
            if is_directory or payload is None:
                self._debug(f"creating directory {path}")
                os.makedirs(path, exist_ok=True)
                return True

            entry_type = self._header.entry_type
            if entry_type not in EXTRACTABLE_FILE_TYPES:
                self._debug(f"skipping {entry_type.value} member {name}")
                payload(NullSink())
                return True

            parent = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            self._debug(f"extracting {name} to {path}")
            with open(path, "wb") as fp:
                payload(fp)
            return True

        self.for_each_entry(_extract_one)

