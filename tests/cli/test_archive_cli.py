import pytest

from ustar.archive.header import EntryType, TarEntryInfo
from ustar.cli.archive_cli import _format_entry, is_unsafe_member_name


@pytest.mark.parametrize(
    "name",
    [
        "/etc/passwd",
        "../up.txt",
        "a/../../b",
        "..",
        "a\\..\\b",
        "C:\\Windows\\win.ini",
        "C:relative.txt",
    ],
)
def test_unsafe_member_names(name: str) -> None:
    assert is_unsafe_member_name(name)


@pytest.mark.parametrize(
    "name",
    ["", "a.txt", "dir/", "dir/sub/file", "..hidden", "a/..b/c", "./a"],
)
def test_safe_member_names(name: str) -> None:
    assert not is_unsafe_member_name(name)


def _info(name: str, entry_type: EntryType, **kwargs: object) -> TarEntryInfo:
    fields: dict[str, object] = {
        "name": name,
        "entry_type": entry_type,
        "typeflag": b"0",
        "size": 0,
        "mode": 0o644,
        "uid": 1000,
        "gid": 100,
        "mtime": 0,
        "linkname": "",
        "uname": "",
        "gname": "",
    }
    fields.update(kwargs)
    return TarEntryInfo(**fields)  # type: ignore[arg-type]


def test_format_entry() -> None:
    info = _info("a.txt", EntryType.REGULAR, size=42)
    assert _format_entry(info, False) == "a.txt"
    assert _format_entry(info, True) == "-0644 1000/100           42 a.txt"

    link = _info("l", EntryType.SYMLINK, mode=0o777, linkname="a.txt")
    assert _format_entry(link, True).endswith(" l -> a.txt")
    assert _format_entry(link, True).startswith("l0777 ")
