import io
import pathlib

from ustar.config import GlobalConfig
from ustar.log import UstarConsoleLogger

from tests.fixtures import MockGlobalModeProvider


def _write_user_config(env: dict[str, str], content: str) -> pathlib.Path:
    p = pathlib.Path(env["XDG_CONFIG_HOME"]) / "ustar" / "config.toml"
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(content, encoding="utf-8")
    return p


def _load(env: dict[str, str]) -> tuple[GlobalConfig, io.StringIO]:
    stderr = io.StringIO()
    logger = UstarConsoleLogger(MockGlobalModeProvider(), io.StringIO(), stderr)
    return GlobalConfig.load_from_config(MockGlobalModeProvider(), logger, env), stderr


def test_defaults(xdg_env: dict[str, str]) -> None:
    gc, stderr = _load(xdg_env)
    assert gc.use_seek is True
    assert gc.copy_buffer_blocks == 1
    assert gc.copy_bufsize == 512
    assert gc.allow_unsafe_paths is False
    assert stderr.getvalue() == ""


def test_user_config(xdg_env: dict[str, str]) -> None:
    p = _write_user_config(
        xdg_env,
        """\
[reader]
use_seek = false
copy_buffer_blocks = 8

[extract]
allow_unsafe_paths = true
""",
    )

    gc, stderr = _load(xdg_env)
    assert gc.local_user_config_file == p
    assert gc.use_seek is False
    assert gc.copy_buffer_blocks == 8
    assert gc.copy_bufsize == 4096
    assert gc.allow_unsafe_paths is True
    assert stderr.getvalue() == ""


def test_user_config_overrides_system_config(xdg_env: dict[str, str]) -> None:
    system = pathlib.Path(xdg_env["XDG_CONFIG_DIRS"]) / "ustar" / "config.toml"
    system.parent.mkdir(parents=True)
    system.write_text(
        "[reader]\ncopy_buffer_blocks = 4\nuse_seek = false\n",
        encoding="utf-8",
    )
    _write_user_config(xdg_env, "[reader]\ncopy_buffer_blocks = 2\n")

    gc, _ = _load(xdg_env)
    assert gc.copy_buffer_blocks == 2
    assert gc.use_seek is False


def test_invalid_entries_are_ignored(xdg_env: dict[str, str]) -> None:
    _write_user_config(
        xdg_env,
        """\
telemetry = "on"

[reader]
use_seek = "no"
copy_buffer_blocks = 0
unknown = 1

[extract]
allow_unsafe_paths = true
""",
    )

    gc, stderr = _load(xdg_env)
    assert gc.use_seek is True
    assert gc.copy_buffer_blocks == 1
    assert gc.allow_unsafe_paths is True

    log = stderr.getvalue()
    assert "invalid config section: telemetry" in log
    assert "reader.use_seek" in log
    assert "must be at least 1" in log
    assert "invalid config key: reader.unknown" in log
    assert log.count("ignoring") == 4


def test_iter_xdg_configs_order(xdg_env: dict[str, str]) -> None:
    gc, _ = _load(xdg_env)
    paths = [e.path for e in gc.iter_xdg_configs()]
    # lowest precedence first
    assert paths == [
        pathlib.Path(xdg_env["XDG_CONFIG_DIRS"]) / "ustar" / "config.toml",
        pathlib.Path(xdg_env["XDG_CONFIG_HOME"]) / "ustar" / "config.toml",
    ]
