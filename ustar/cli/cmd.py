import argparse
from typing import Callable, TYPE_CHECKING

from . import USTAR_ENTRYPOINT_NAME

if TYPE_CHECKING:
    from ..config import GlobalConfig

    CLIEntrypoint = Callable[["GlobalConfig", argparse.Namespace], int]


class BaseCommand:
    """Declarative argparse registration.

    Every subclass registers itself on definition; direct subclasses of a
    command become its subcommands when the parser is built.
    """

    commands: "list[type[BaseCommand]]" = []

    cmd: str | None
    aliases: list[str]
    help: str | None
    prog: str | None
    description: str | None

    def __init_subclass__(
        cls,
        cmd: str | None,
        aliases: list[str] | None = None,
        help: str | None = None,
        prog: str | None = None,
        description: str | None = None,
        **kwargs: object,
    ) -> None:
        cls.cmd = cmd
        cls.aliases = aliases or []
        cls.help = help
        cls.prog = prog
        cls.description = description

        cls.commands.append(cls)
        super().__init_subclass__(**kwargs)

    @classmethod
    def configure_args(cls, gc: "GlobalConfig", p: argparse.ArgumentParser) -> None:
        """Configure arguments for this parser."""
        pass

    @classmethod
    def main(cls, cfg: "GlobalConfig", args: argparse.Namespace) -> int:
        """Entrypoint of this command."""
        raise NotImplementedError

    @classmethod
    def subcommands(cls) -> "list[type[BaseCommand]]":
        return [c for c in cls.commands if c.__bases__[0] is cls]

    @classmethod
    def build_argparse(cls, gc: "GlobalConfig") -> argparse.ArgumentParser:
        p = argparse.ArgumentParser(prog=cls.prog, description=cls.description)
        cls._configure(gc, p)
        return p

    @classmethod
    def _configure(cls, gc: "GlobalConfig", p: argparse.ArgumentParser) -> None:
        cls.configure_args(gc, p)
        p.set_defaults(func=cls.main)

        children = cls.subcommands()
        if not children:
            return

        sp = p.add_subparsers(title="subcommands")
        for child in children:
            assert child.cmd is not None
            child_p = sp.add_parser(child.cmd, aliases=child.aliases, help=child.help)
            child._configure(gc, child_p)


class RootCommand(
    BaseCommand,
    cmd=None,
    prog=USTAR_ENTRYPOINT_NAME,
    description="Sequential USTAR archive reader",
):
    @classmethod
    def configure_args(cls, gc: "GlobalConfig", p: argparse.ArgumentParser) -> None:
        from .version_cli import cli_version

        p.add_argument(
            "-V",
            "--version",
            action="store_const",
            dest="func",
            const=cli_version,
            help="Print version information",
        )
        p.add_argument(
            "--porcelain",
            action="store_true",
            help="Give the output in a machine-friendly format if applicable",
        )

    @classmethod
    def main(cls, cfg: "GlobalConfig", args: argparse.Namespace) -> int:
        args._parser.print_help()  # pylint: disable=protected-access
        return 0
