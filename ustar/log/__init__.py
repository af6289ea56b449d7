import abc
import datetime
from functools import cached_property
import io
import sys
import time
from typing import Any, BinaryIO, Final, TextIO, TYPE_CHECKING, cast

if TYPE_CHECKING:
    # too heavy at package import time
    from rich.console import Console, RenderableType
    from rich.text import Text

from ..utils.global_mode import ProvidesGlobalMode
from ..utils.porcelain import PorcelainEntity, PorcelainEntityType, PorcelainOutput


class PorcelainLog(PorcelainEntity):
    t: int
    """Timestamp of the message line in microseconds"""

    lvl: str
    """Log level of the message line (one of D, F, I, W)"""

    msg: str
    """Message content"""


_LEVEL_PREFIXES: Final = {
    "F": "[bold red]fatal error:[/]",
    "I": "[bold green]info:[/]",
    "W": "[bold yellow]warn:[/]",
}


def log_time_formatter(x: datetime.datetime) -> "Text":
    from rich.text import Text

    return Text(f"debug: [{x.isoformat()}]")


def _render_plain(message: "RenderableType", sep: str, *objects: Any) -> str:
    from rich.console import Console

    with io.StringIO() as buf:
        Console(file=buf).print(message, *objects, sep=sep, end="")
        return buf.getvalue()


class UstarLogger(metaclass=abc.ABCMeta):
    """Console output of the program.

    The level methods are named after Android's ``Log.d`` and friends: ``D``
    is for debug output, ``I`` informational, ``W`` warnings and ``F`` fatal
    errors. Regular program output goes through :meth:`stdout` or, in
    porcelain mode, :meth:`porcelain`.
    """

    @abc.abstractmethod
    def porcelain(self, obj: PorcelainEntity) -> None:
        """Emits one machine-readable object on stdout."""
        raise NotImplementedError

    @abc.abstractmethod
    def stdout(
        self,
        message: "RenderableType",
        *objects: Any,
        sep: str = " ",
        end: str = "\n",
    ) -> None:
        raise NotImplementedError

    @abc.abstractmethod
    def emit(
        self,
        lvl: str,
        message: "RenderableType",
        *objects: Any,
        sep: str = " ",
        end: str = "\n",
        stack_offset: int = 1,
    ) -> None:
        """Writes one log line at level ``lvl``. ``stack_offset`` counts the
        frames between the logged call site and this method."""
        raise NotImplementedError

    def D(
        self,
        message: "RenderableType",
        *objects: Any,
        sep: str = " ",
        end: str = "\n",
        _stack_offset_delta: int = 0,
    ) -> None:
        self.emit(
            "D",
            message,
            *objects,
            sep=sep,
            end=end,
            stack_offset=2 + _stack_offset_delta,
        )

    def F(
        self,
        message: "RenderableType",
        *objects: Any,
        sep: str = " ",
        end: str = "\n",
    ) -> None:
        self.emit("F", message, *objects, sep=sep, end=end, stack_offset=2)

    def I(  # noqa: E743 # the name intentionally mimics Android logging for brevity
        self,
        message: "RenderableType",
        *objects: Any,
        sep: str = " ",
        end: str = "\n",
    ) -> None:
        self.emit("I", message, *objects, sep=sep, end=end, stack_offset=2)

    def W(
        self,
        message: "RenderableType",
        *objects: Any,
        sep: str = " ",
        end: str = "\n",
    ) -> None:
        self.emit("W", message, *objects, sep=sep, end=end, stack_offset=2)


class UstarConsoleLogger(UstarLogger):
    def __init__(
        self,
        gm: ProvidesGlobalMode,
        stdout: TextIO = sys.stdout,
        stderr: TextIO = sys.stderr,
    ) -> None:
        self._gm = gm
        self._stdout = stdout
        self._stderr = stderr

    @cached_property
    def _stdout_console(self) -> "Console":
        from rich.console import Console

        return Console(file=self._stdout, highlight=False, soft_wrap=True)

    @cached_property
    def _debug_console(self) -> "Console":
        from rich.console import Console

        return Console(
            file=self._stderr,
            log_time_format=log_time_formatter,
            soft_wrap=True,
        )

    @cached_property
    def _log_console(self) -> "Console":
        from rich.console import Console

        return Console(file=self._stderr, highlight=False, soft_wrap=True)

    @cached_property
    def _porcelain_sink(self) -> PorcelainOutput:
        return _make_porcelain_sink(self._stderr)

    @cached_property
    def _stdout_porcelain_sink(self) -> PorcelainOutput:
        return _make_porcelain_sink(self._stdout)

    def porcelain(self, obj: PorcelainEntity) -> None:
        self._stdout_porcelain_sink.emit(obj)

    def stdout(
        self,
        message: "RenderableType",
        *objects: Any,
        sep: str = " ",
        end: str = "\n",
    ) -> None:
        return self._stdout_console.print(message, *objects, sep=sep, end=end)

    def emit(
        self,
        lvl: str,
        message: "RenderableType",
        *objects: Any,
        sep: str = " ",
        end: str = "\n",
        stack_offset: int = 1,
    ) -> None:
        if lvl == "D" and not self._gm.is_debug:
            return

        if self._gm.is_porcelain:
            log: PorcelainLog = {
                "ty": PorcelainEntityType.LogV1,
                "t": int(time.time() * 1000000),
                "lvl": lvl,
                "msg": _render_plain(message, sep, *objects),
            }
            return self._porcelain_sink.emit(log)

        if lvl == "D":
            # point the record at the code that logged, not at this method
            return self._debug_console.log(
                message,
                *objects,
                sep=sep,
                end=end,
                _stack_offset=stack_offset + 1,
            )

        return self._log_console.print(
            f"{_LEVEL_PREFIXES[lvl]} {message}",
            *objects,
            sep=sep,
            end=end,
        )


class _TextSinkAdapter:
    def __init__(self, out: TextIO) -> None:
        self._out = out

    def write(self, b: bytes) -> int:
        return self._out.write(b.decode("utf-8"))

    def flush(self) -> None:
        self._out.flush()


def _make_porcelain_sink(out: TextIO) -> PorcelainOutput:
    buf = getattr(out, "buffer", None)
    if buf is None:
        # in-memory text streams, e.g. under test
        return PorcelainOutput(cast("BinaryIO", _TextSinkAdapter(out)))
    return PorcelainOutput(buf)


def humanize_size(n: int) -> str:
    if n < 1024:
        return f"{n} B"

    size = float(n)
    for unit in ("KiB", "MiB", "GiB"):
        size /= 1024
        if size < 1024:
            return f"{size:.1f} {unit}"
    return f"{size / 1024:.1f} TiB"
