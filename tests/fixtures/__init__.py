from contextlib import redirect_stderr, redirect_stdout
from dataclasses import dataclass
import io
import pathlib
import tarfile
from typing import Final

import pytest

from ustar.archive.header import BLOCK_SIZE, EntryType, UstarHeader
from ustar.cli.main import main as ustar_main
from ustar.config import GlobalConfig
from ustar.log import UstarConsoleLogger, UstarLogger
from ustar.utils.global_mode import EnvGlobalModeProvider, GlobalModeProvider

ZERO_BLOCK: Final = bytes(BLOCK_SIZE)


def make_entry(
    name: str,
    data: bytes = b"",
    entry_type: EntryType = EntryType.REGULAR,
    *,
    typeflag: bytes | None = None,
    pad: bool = True,
) -> bytes:
    """Returns one encoded member: header block, payload and padding."""
    h = UstarHeader(name, len(data), entry_type)
    if typeflag is not None:
        h.typeflag = typeflag
    out = h.to_bytes() + data
    if pad:
        out += bytes(-len(data) % BLOCK_SIZE)
    return out


def make_archive(*entries: bytes) -> bytes:
    return b"".join(entries) + ZERO_BLOCK + ZERO_BLOCK


def make_stdlib_archive(members: list[tuple[str, bytes | None]]) -> bytes:
    """Builds an archive with the standard library's encoder. A member whose
    data is None is a directory."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w", format=tarfile.USTAR_FORMAT) as tf:
        for name, data in members:
            ti = tarfile.TarInfo(name)
            ti.mtime = 1700000000
            if data is None:
                ti.type = tarfile.DIRTYPE
                ti.mode = 0o755
                tf.addfile(ti)
            else:
                ti.size = len(data)
                ti.mode = 0o644
                tf.addfile(ti, io.BytesIO(data))
    return buf.getvalue()


class ForwardOnlyStream(io.RawIOBase):
    """A non-seekable view of some bytes, like a pipe."""

    def __init__(self, data: bytes) -> None:
        self._inner = io.BytesIO(data)

    def readable(self) -> bool:
        return True

    def seekable(self) -> bool:
        return False

    def readinto(self, b: "bytearray | memoryview") -> int:  # type: ignore[override]
        return self._inner.readinto(b)

    @property
    def consumed(self) -> int:
        return self._inner.tell()


class TricklingStream(ForwardOnlyStream):
    """Returns at most ``chunk`` bytes per read call."""

    def __init__(self, data: bytes, chunk: int) -> None:
        super().__init__(data)
        self._chunk = chunk

    def readinto(self, b: "bytearray | memoryview") -> int:  # type: ignore[override]
        view = memoryview(b)[: self._chunk]
        return self._inner.readinto(view)


class ReadOnlyStream:
    """Bare object offering nothing but read() and close()."""

    def __init__(self, data: bytes) -> None:
        self._inner = io.BytesIO(data)
        self.closed = False

    def read(self, n: int = -1) -> bytes:
        return self._inner.read(n)

    def close(self) -> None:
        self.closed = True


class MockGlobalModeProvider(GlobalModeProvider):
    def __init__(
        self,
        is_debug: bool = False,
        is_porcelain: bool = False,
    ) -> None:
        self._is_debug = is_debug
        self._is_porcelain = is_porcelain

    @property
    def argv0(self) -> str:
        return "ustar"

    @property
    def is_debug(self) -> bool:
        return self._is_debug

    @property
    def is_porcelain(self) -> bool:
        return self._is_porcelain

    @is_porcelain.setter
    def is_porcelain(self, v: bool) -> None:
        self._is_porcelain = v


@pytest.fixture
def mock_gm() -> MockGlobalModeProvider:
    return MockGlobalModeProvider()


@pytest.fixture
def ustar_logger(mock_gm: GlobalModeProvider) -> UstarLogger:
    """Fixture for creating a UstarLogger instance."""
    return UstarConsoleLogger(mock_gm)


@dataclass
class CLIRunResult:
    exit_code: int
    stdout_bytes: bytes
    stderr: str

    @property
    def stdout(self) -> str:
        return self.stdout_bytes.decode("utf-8")


class IntegrationTestHarness:
    def __init__(self, env: dict[str, str], workdir: pathlib.Path) -> None:
        self._env = env
        self.workdir = workdir

    def __call__(self, *args: str) -> CLIRunResult:
        return self.run(*args)

    def run(self, *args: str) -> CLIRunResult:
        argv = ["ustar", *args]
        stdout_raw = io.BytesIO()
        stderr_raw = io.BytesIO()
        stdout_io = io.TextIOWrapper(stdout_raw, encoding="utf-8", write_through=True)
        stderr_io = io.TextIOWrapper(stderr_raw, encoding="utf-8", write_through=True)
        with redirect_stdout(stdout_io), redirect_stderr(stderr_io):
            gm = EnvGlobalModeProvider(self._env, argv)
            logger = UstarConsoleLogger(gm, stdout=stdout_io, stderr=stderr_io)
            gc = GlobalConfig.load_from_config(gm, logger, self._env)
            exit_code = ustar_main(gm, gc, argv)
        stdout_io.flush()
        stderr_io.flush()
        return CLIRunResult(
            exit_code,
            stdout_raw.getvalue(),
            stderr_raw.getvalue().decode("utf-8"),
        )

    def write_config(self, content: str) -> pathlib.Path:
        p = pathlib.Path(self._env["XDG_CONFIG_HOME"]) / "ustar" / "config.toml"
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_text(content, encoding="utf-8")
        return p


@pytest.fixture
def xdg_env(tmp_path: pathlib.Path) -> dict[str, str]:
    config_home = tmp_path / "xdg-config"
    config_dirs = tmp_path / "xdg-config-dirs"
    for p in (config_home, config_dirs):
        p.mkdir(parents=True, exist_ok=True)

    return {
        "HOME": str(tmp_path / "home"),
        "XDG_CONFIG_HOME": str(config_home),
        "XDG_CONFIG_DIRS": str(config_dirs),
    }


@pytest.fixture
def ustar_cli_runner(
    tmp_path: pathlib.Path,
    xdg_env: dict[str, str],
) -> IntegrationTestHarness:
    workdir = tmp_path / "work"
    workdir.mkdir(parents=True, exist_ok=True)
    return IntegrationTestHarness(xdg_env, workdir)
