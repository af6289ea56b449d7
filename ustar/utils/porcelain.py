import enum
import json
import sys
from typing import BinaryIO, TypedDict

if sys.version_info >= (3, 11):

    class PorcelainEntityType(enum.StrEnum):
        LogV1 = "log-v1"
        EntryV1 = "entry-v1"

else:

    class PorcelainEntityType(str, enum.Enum):
        LogV1 = "log-v1"
        EntryV1 = "entry-v1"


class PorcelainEntity(TypedDict):
    ty: PorcelainEntityType


class PorcelainOutput:
    """Writes one JSON object per line."""

    def __init__(self, out: BinaryIO | None = None) -> None:
        self.out = sys.stdout.buffer if out is None else out

    def emit(self, obj: PorcelainEntity) -> None:
        s = json.dumps(obj, ensure_ascii=False, separators=(",", ":"))
        self.out.write(s.encode("utf-8"))
        self.out.write(b"\n")
        self.out.flush()
