import enum
import os
import sys
from dataclasses import dataclass
from typing import Final

from .errors import CorruptArchiveError

BLOCK_SIZE: Final = 512
HEADER_SIZE: Final = BLOCK_SIZE

# (offset, width) of every USTAR header field
_NAME: Final = (0, 100)
_MODE: Final = (100, 8)
_UID: Final = (108, 8)
_GID: Final = (116, 8)
_SIZE: Final = (124, 12)
_MTIME: Final = (136, 12)
_CHKSUM: Final = (148, 8)
_TYPEFLAG: Final = (156, 1)
_LINKNAME: Final = (157, 100)
_MAGIC: Final = (257, 6)
_VERSION: Final = (263, 2)
_UNAME: Final = (265, 32)
_GNAME: Final = (297, 32)
_DEVMAJOR: Final = (329, 8)
_DEVMINOR: Final = (337, 8)
_PREFIX: Final = (345, 155)

USTAR_MAGIC: Final = b"ustar\x00"
USTAR_VERSION: Final = b"00"

ENCODING: Final = "utf-8"
ENCODING_ERRORS: Final = "surrogateescape"

_OCTAL_DIGITS: Final = b"01234567"

if sys.version_info >= (3, 11):

    class EntryType(enum.StrEnum):
        REGULAR = "regular"
        HARDLINK = "hardlink"
        SYMLINK = "symlink"
        CHAR_DEVICE = "chardev"
        BLOCK_DEVICE = "blockdev"
        DIRECTORY = "directory"
        FIFO = "fifo"
        CONTIGUOUS = "contiguous"
        OTHER = "other"

else:

    class EntryType(str, enum.Enum):
        REGULAR = "regular"
        HARDLINK = "hardlink"
        SYMLINK = "symlink"
        CHAR_DEVICE = "chardev"
        BLOCK_DEVICE = "blockdev"
        DIRECTORY = "directory"
        FIFO = "fifo"
        CONTIGUOUS = "contiguous"
        OTHER = "other"


_ENTRY_TYPES_BY_FLAG: Final[dict[bytes, EntryType]] = {
    b"0": EntryType.REGULAR,
    b"\x00": EntryType.REGULAR,
    b"1": EntryType.HARDLINK,
    b"2": EntryType.SYMLINK,
    b"3": EntryType.CHAR_DEVICE,
    b"4": EntryType.BLOCK_DEVICE,
    b"5": EntryType.DIRECTORY,
    b"6": EntryType.FIFO,
    b"7": EntryType.CONTIGUOUS,
}

_FLAGS_BY_ENTRY_TYPE: Final[dict[EntryType, bytes]] = {
    EntryType.REGULAR: b"0",
    EntryType.HARDLINK: b"1",
    EntryType.SYMLINK: b"2",
    EntryType.CHAR_DEVICE: b"3",
    EntryType.BLOCK_DEVICE: b"4",
    EntryType.DIRECTORY: b"5",
    EntryType.FIFO: b"6",
    EntryType.CONTIGUOUS: b"7",
}


def entry_type_from_flag(flag: bytes) -> EntryType:
    return _ENTRY_TYPES_BY_FLAG.get(flag, EntryType.OTHER)


def is_all_zero(block: bytes | bytearray | memoryview) -> bool:
    """Returns whether every byte of ``block`` is zero, i.e. whether it is an
    end-of-archive sentinel block."""
    return not any(block)


def is_path_separator(ch: str) -> bool:
    return ch == "/" or ch == os.sep or (os.altsep is not None and ch == os.altsep)


def path_ends_in_separator(name: str) -> bool:
    """Older encoders mark directories with a trailing separator only, without
    setting the type flag."""
    return bool(name) and is_path_separator(name[-1])


def compute_checksum(block: bytes | bytearray | memoryview) -> int:
    """Unsigned byte sum of the header block, with the checksum field itself
    counted as ASCII spaces."""
    off, width = _CHKSUM
    return sum(block[:off]) + width * 0x20 + sum(block[off + width : HEADER_SIZE])


def stored_checksum(block: bytes | bytearray | memoryview) -> int | None:
    """The checksum recorded in the header, or None if the field is not octal."""
    return _nti(_field(block, _CHKSUM))


def _field(block: bytes | bytearray | memoryview, loc: tuple[int, int]) -> bytes:
    off, width = loc
    return bytes(block[off : off + width])


def _nts(raw: bytes) -> str:
    p = raw.find(b"\x00")
    if p != -1:
        raw = raw[:p]
    return raw.decode(ENCODING, ENCODING_ERRORS)


def _nti(raw: bytes) -> int | None:
    p = raw.find(b"\x00")
    if p != -1:
        raw = raw[:p]
    s = raw.strip()
    if not s:
        return 0
    # int() would also take a sign or underscores
    if s.translate(None, _OCTAL_DIGITS):
        return None
    return int(s, 8)


def _stn(s: str, width: int, field_name: str) -> bytes:
    b = s.encode(ENCODING, ENCODING_ERRORS)
    if len(b) > width:
        raise ValueError(f"{field_name} too long: {s!r}")
    return b.ljust(width, b"\x00")


def _itn(n: int, width: int, field_name: str) -> bytes:
    # width - 1 octal digits followed by a NUL
    digits = f"{n:0{width - 1}o}"
    if n < 0 or len(digits) > width - 1:
        raise ValueError(f"{field_name} out of range for a USTAR header: {n}")
    return digits.encode("ascii") + b"\x00"


def _split_name(name: str) -> tuple[str, str]:
    """Splits a member name into (prefix, name) so that both fit their
    respective fields."""
    encoded = name.encode(ENCODING, ENCODING_ERRORS)
    name_width = _NAME[1]
    prefix_width = _PREFIX[1]
    if len(encoded) <= name_width:
        return "", name

    components = name.split("/")
    for i in range(1, len(components)):
        prefix = "/".join(components[:i])
        rest = "/".join(components[i:])
        if (
            len(prefix.encode(ENCODING, ENCODING_ERRORS)) <= prefix_width
            and len(rest.encode(ENCODING, ENCODING_ERRORS)) <= name_width
            and rest
        ):
            return prefix, rest

    raise ValueError(f"name too long for a USTAR header: {name!r}")


@dataclass(frozen=True)
class TarEntryInfo:
    """Immutable copy of the metadata of one archive member."""

    name: str
    entry_type: EntryType
    typeflag: bytes
    size: int
    mode: int
    uid: int
    gid: int
    mtime: int
    linkname: str
    uname: str
    gname: str

    @property
    def is_directory(self) -> bool:
        return self.entry_type == EntryType.DIRECTORY or path_ends_in_separator(
            self.name
        )


class UstarHeader:
    """One 512-byte USTAR header block together with its decoded fields.

    A :class:`~ustar.archive.reader.TarReader` owns exactly one instance and
    overwrites it in place on every successful advance, so callers must read
    the fields they need before advancing again, or keep a :meth:`snapshot`.
    """

    def __init__(
        self,
        name: str = "",
        size: int = 0,
        entry_type: EntryType = EntryType.REGULAR,
    ) -> None:
        self._buf = bytearray(HEADER_SIZE)

        self.name = name
        self.prefix = ""
        self.mode = 0o755 if entry_type == EntryType.DIRECTORY else 0o644
        self.uid = 0
        self.gid = 0
        self.size = size
        self.mtime = 0
        self.chksum = 0
        self.typeflag = _FLAGS_BY_ENTRY_TYPE.get(entry_type, b"0")
        self.linkname = ""
        self.magic = USTAR_MAGIC
        self.version = USTAR_VERSION
        self.uname = ""
        self.gname = ""
        self.devmajor = 0
        self.devminor = 0

    def __repr__(self) -> str:
        return f"<UstarHeader {self.file_name!r} {self.entry_type} {self.size}>"

    @property
    def buffer(self) -> bytearray:
        """The raw block backing this header, for the reader to fill in place."""
        return self._buf

    @property
    def header_size(self) -> int:
        return HEADER_SIZE

    @property
    def file_name(self) -> str:
        if self.prefix and self.magic.startswith(b"ustar"):
            return f"{self.prefix}/{self.name}"
        return self.name

    @property
    def size_in_bytes(self) -> int:
        return self.size

    @property
    def entry_type(self) -> EntryType:
        return entry_type_from_flag(self.typeflag)

    @property
    def is_directory(self) -> bool:
        return self.entry_type == EntryType.DIRECTORY or path_ends_in_separator(
            self.file_name
        )

    def update_from_bytes(self, block: bytes | bytearray | None = None) -> bool:
        """Decodes the header from ``block``, or from the current contents of
        :attr:`buffer` if omitted.

        Returns False without touching the decoded fields if the stored
        checksum does not match the block. Raises :class:`CorruptArchiveError`
        if the checksum matches but a numeric field is malformed; the decoded
        fields are left untouched in that case too.
        """
        if block is not None:
            if len(block) != HEADER_SIZE:
                raise ValueError(
                    f"a header block must be {HEADER_SIZE} bytes, got {len(block)}"
                )
            self._buf[:] = block

        buf = self._buf
        stored = stored_checksum(buf)
        if stored is None or stored != compute_checksum(buf):
            return False

        mode, uid, gid, size, mtime, devmajor, devminor = (
            self._decode_number(buf, loc, field_name)
            for loc, field_name in (
                (_MODE, "mode"),
                (_UID, "uid"),
                (_GID, "gid"),
                (_SIZE, "size"),
                (_MTIME, "mtime"),
                (_DEVMAJOR, "devmajor"),
                (_DEVMINOR, "devminor"),
            )
        )

        self.chksum = stored
        self.name = _nts(_field(buf, _NAME))
        self.mode = mode
        self.uid = uid
        self.gid = gid
        self.size = size
        self.mtime = mtime
        self.typeflag = _field(buf, _TYPEFLAG)
        self.linkname = _nts(_field(buf, _LINKNAME))
        self.magic = _field(buf, _MAGIC)
        self.version = _field(buf, _VERSION)
        self.uname = _nts(_field(buf, _UNAME))
        self.gname = _nts(_field(buf, _GNAME))
        self.devmajor = devmajor
        self.devminor = devminor
        self.prefix = _nts(_field(buf, _PREFIX))
        return True

    @staticmethod
    def _decode_number(
        buf: bytearray,
        loc: tuple[int, int],
        field_name: str,
    ) -> int:
        n = _nti(_field(buf, loc))
        if n is None:
            raise CorruptArchiveError(
                f"invalid octal value in header field {field_name}: {_field(buf, loc)!r}"
            )
        return n

    def to_bytes(self) -> bytes:
        """Encodes the fields into a fresh 512-byte block with a valid
        checksum. The block is also kept as :attr:`buffer`."""
        if self.prefix:
            prefix, name = self.prefix, self.name
        else:
            prefix, name = _split_name(self.name)

        buf = bytearray(HEADER_SIZE)

        def put(loc: tuple[int, int], data: bytes) -> None:
            off, width = loc
            assert len(data) == width
            buf[off : off + width] = data

        put(_NAME, _stn(name, _NAME[1], "name"))
        put(_MODE, _itn(self.mode, _MODE[1], "mode"))
        put(_UID, _itn(self.uid, _UID[1], "uid"))
        put(_GID, _itn(self.gid, _GID[1], "gid"))
        put(_SIZE, _itn(self.size, _SIZE[1], "size"))
        put(_MTIME, _itn(self.mtime, _MTIME[1], "mtime"))
        put(_TYPEFLAG, self.typeflag[:1].ljust(1, b"\x00"))
        put(_LINKNAME, _stn(self.linkname, _LINKNAME[1], "linkname"))
        put(_MAGIC, self.magic[:6].ljust(6, b"\x00"))
        put(_VERSION, self.version[:2].ljust(2, b"\x00"))
        put(_UNAME, _stn(self.uname, _UNAME[1], "uname"))
        put(_GNAME, _stn(self.gname, _GNAME[1], "gname"))
        put(_DEVMAJOR, _itn(self.devmajor, _DEVMAJOR[1], "devmajor"))
        put(_DEVMINOR, _itn(self.devminor, _DEVMINOR[1], "devminor"))
        put(_PREFIX, _stn(prefix, _PREFIX[1], "prefix"))

        chksum = compute_checksum(buf)
        # 6 octal digits, NUL, space
        put(_CHKSUM, f"{chksum:06o}".encode("ascii") + b"\x00 ")

        self.chksum = chksum
        self._buf[:] = buf
        return bytes(buf)

    def snapshot(self) -> TarEntryInfo:
        return TarEntryInfo(
            name=self.file_name,
            entry_type=self.entry_type,
            typeflag=self.typeflag,
            size=self.size,
            mode=self.mode,
            uid=self.uid,
            gid=self.gid,
            mtime=self.mtime,
            linkname=self.linkname,
            uname=self.uname,
            gname=self.gname,
        )


def decode_header(block: bytes | bytearray) -> tuple[UstarHeader, bool]:
    """Decodes a standalone header block, returning the header and whether its
    checksum was valid."""
    h = UstarHeader()
    ok = h.update_from_bytes(block)
    return h, ok
