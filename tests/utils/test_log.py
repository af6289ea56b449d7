import io
import json

from ustar.log import UstarConsoleLogger, humanize_size

from tests.fixtures import MockGlobalModeProvider


def test_humanize_size() -> None:
    assert humanize_size(0) == "0 B"
    assert humanize_size(1023) == "1023 B"
    assert humanize_size(1024) == "1.0 KiB"
    assert humanize_size(1536) == "1.5 KiB"
    assert humanize_size(5 * 1024 * 1024) == "5.0 MiB"
    assert humanize_size(3 * 1024**4) == "3.0 TiB"


def test_console_logger_levels() -> None:
    stdout = io.StringIO()
    stderr = io.StringIO()
    logger = UstarConsoleLogger(MockGlobalModeProvider(), stdout, stderr)

    logger.D("invisible")
    logger.I("some info")
    logger.W("a warning")
    logger.F("boom")
    logger.stdout("regular output")

    assert stdout.getvalue() == "regular output\n"
    assert stderr.getvalue().splitlines() == [
        "info: some info",
        "warn: a warning",
        "fatal error: boom",
    ]


def test_porcelain_logger() -> None:
    stdout = io.StringIO()
    stderr = io.StringIO()
    gm = MockGlobalModeProvider(is_debug=True, is_porcelain=True)
    logger = UstarConsoleLogger(gm, stdout, stderr)

    logger.D("debug line")
    logger.W("careful [yellow]now[/]")

    objs = [json.loads(line) for line in stderr.getvalue().splitlines()]
    assert [(o["ty"], o["lvl"], o["msg"]) for o in objs] == [
        ("log-v1", "D", "debug line"),
        ("log-v1", "W", "careful now"),
    ]
    assert stdout.getvalue() == ""
