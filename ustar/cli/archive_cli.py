import argparse
import os
import pathlib
import sys
from typing import BinaryIO, TYPE_CHECKING

from rich.markup import escape

from ..archive.header import EntryType, TarEntryInfo
from ..archive.reader import (
    EXTRACTABLE_FILE_TYPES,
    NullSink,
    PayloadSource,
    TarReader,
)
from ..utils.porcelain import PorcelainEntity, PorcelainEntityType
from .cmd import RootCommand

if TYPE_CHECKING:
    from ..config import GlobalConfig


class PorcelainEntryV1(PorcelainEntity):
    name: str
    type: str
    size: int
    mode: int
    mtime: int
    linkname: str


_TYPE_CHARS = {
    EntryType.REGULAR: "-",
    EntryType.CONTIGUOUS: "-",
    EntryType.HARDLINK: "h",
    EntryType.SYMLINK: "l",
    EntryType.CHAR_DEVICE: "c",
    EntryType.BLOCK_DEVICE: "b",
    EntryType.DIRECTORY: "d",
    EntryType.FIFO: "p",
    EntryType.OTHER: "?",
}


class ListCommand(
    RootCommand,
    cmd="list",
    aliases=["ls"],
    help="List the members of an archive",
):
    @classmethod
    def configure_args(cls, gc: "GlobalConfig", p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "archive",
            type=str,
            help="Path to the archive, or '-' for standard input",
        )
        p.add_argument(
            "--verbose",
            "-v",
            action="store_true",
            help="Also show type, permissions and size of every member",
        )

    @classmethod
    def main(cls, cfg: "GlobalConfig", args: argparse.Namespace) -> int:
        return cli_list(cfg, args)


class ExtractCommand(
    RootCommand,
    cmd="extract",
    aliases=["x"],
    help="Extract the members of an archive",
):
    @classmethod
    def configure_args(cls, gc: "GlobalConfig", p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "archive",
            type=str,
            help="Path to the archive, or '-' for standard input",
        )
        p.add_argument(
            "-C",
            "--directory",
            type=str,
            dest="dest",
            default=".",
            help="Extract into this directory instead of the current one",
        )
        p.add_argument(
            "--allow-unsafe-paths",
            action="store_true",
            default=gc.allow_unsafe_paths,
            help="Also extract members with absolute names or '..' components",
        )

    @classmethod
    def main(cls, cfg: "GlobalConfig", args: argparse.Namespace) -> int:
        return cli_extract(cfg, args)


class CatCommand(
    RootCommand,
    cmd="cat",
    help="Write the content of one archive member to stdout",
):
    @classmethod
    def configure_args(cls, gc: "GlobalConfig", p: argparse.ArgumentParser) -> None:
        p.add_argument(
            "archive",
            type=str,
            help="Path to the archive, or '-' for standard input",
        )
        p.add_argument(
            "member",
            type=str,
            help="Name of the member to output",
        )

    @classmethod
    def main(cls, cfg: "GlobalConfig", args: argparse.Namespace) -> int:
        return cli_cat(cfg, args)


def open_archive(cfg: "GlobalConfig", path: str) -> TarReader:
    stream: BinaryIO
    if path == "-":
        # leave the process' stdin open when the reader is closed
        stream = open(sys.stdin.fileno(), "rb", closefd=False)
    else:
        stream = open(path, "rb")

    return TarReader(
        stream,
        logger=cfg.logger,
        use_seek=cfg.use_seek,
        copy_bufsize=cfg.copy_bufsize,
    )


def is_unsafe_member_name(name: str) -> bool:
    """Returns whether extracting ``name`` below a directory could escape it."""
    if not name:
        return False
    if name.startswith("/") or os.path.isabs(name):
        return True
    if pathlib.PureWindowsPath(name).drive:
        return True
    parts = name.replace("\\", "/").split("/")
    return ".." in parts


def _format_entry(info: TarEntryInfo, verbose: bool) -> str:
    if not verbose:
        return info.name

    type_char = "d" if info.is_directory else _TYPE_CHARS[info.entry_type]
    line = f"{type_char}{info.mode:04o} {info.uid}/{info.gid} {info.size:>12} {info.name}"
    if info.linkname:
        line += f" -> {info.linkname}"
    return line


def cli_list(cfg: "GlobalConfig", args: argparse.Namespace) -> int:
    logger = cfg.logger
    verbose: bool = args.verbose

    with open_archive(cfg, args.archive) as r:
        for info in r.iter_entries():
            if cfg.is_porcelain:
                obj: PorcelainEntryV1 = {
                    "ty": PorcelainEntityType.EntryV1,
                    "name": info.name,
                    "type": str(
                        EntryType.DIRECTORY if info.is_directory else info.entry_type
                    ),
                    "size": info.size,
                    "mode": info.mode,
                    "mtime": info.mtime,
                    "linkname": info.linkname,
                }
                logger.porcelain(obj)
                continue

            logger.stdout(escape(_format_entry(info, verbose)))

    return 0


def cli_extract(cfg: "GlobalConfig", args: argparse.Namespace) -> int:
    from ..log import humanize_size

    logger = cfg.logger
    dest: str = args.dest
    allow_unsafe: bool = args.allow_unsafe_paths

    os.makedirs(dest, exist_ok=True)

    nr_extracted = 0
    nr_refused = 0
    nr_skipped = 0
    total_size = 0

    with open_archive(cfg, args.archive) as r:

        def _visit(is_directory: bool, name: str, payload: PayloadSource | None) -> bool:
            nonlocal nr_extracted, nr_refused, nr_skipped, total_size

            if not allow_unsafe and is_unsafe_member_name(name):
                logger.W(f"refusing to extract member with unsafe name [yellow]{escape(name)}[/]")
                nr_refused += 1
                if payload is not None:
                    payload(NullSink())
                return True

            if not name:
                logger.W("skipping member with an empty name")
                nr_skipped += 1
                if payload is not None:
                    payload(NullSink())
                return True

            path = os.path.join(dest, name)
            if is_directory or payload is None:
                logger.D(f"creating directory {path}")
                os.makedirs(path, exist_ok=True)
                return True

            entry_type = r.header.entry_type
            if entry_type not in EXTRACTABLE_FILE_TYPES:
                logger.W(f"skipping {entry_type.value} member [yellow]{escape(name)}[/]")
                nr_skipped += 1
                payload(NullSink())
                return True

            parent = os.path.dirname(path)
            if parent:
                os.makedirs(parent, exist_ok=True)
            logger.D(f"extracting {name} to {path}")
            with open(path, "wb") as fp:
                total_size += payload(fp)
            nr_extracted += 1
            return True

        r.for_each_entry(_visit)

    logger.I(
        f"extracted {nr_extracted} file(s), {humanize_size(total_size)} in total, into [green]{dest}[/]"
    )
    if nr_skipped:
        logger.I(f"skipped {nr_skipped} member(s) that cannot be extracted")
    if nr_refused:
        logger.W(f"{nr_refused} member(s) were not extracted due to unsafe names")
        return 1
    return 0


def cli_cat(cfg: "GlobalConfig", args: argparse.Namespace) -> int:
    logger = cfg.logger
    member: str = args.member.rstrip("/")

    with open_archive(cfg, args.archive) as r:
        while r.advance(skip_unread=True):
            h = r.header
            if h.file_name.rstrip("/") != member:
                continue

            if h.is_directory:
                logger.F(f"[yellow]{escape(member)}[/] is a directory")
                return 1

            out = sys.stdout.buffer
            r.copy_entry_to(out)
            out.flush()
            return 0

    logger.F(f"member [yellow]{escape(member)}[/] not found in the archive")
    return 1
