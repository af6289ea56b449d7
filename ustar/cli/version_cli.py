import argparse
from typing import TYPE_CHECKING

from .cmd import RootCommand

if TYPE_CHECKING:
    from ..config import GlobalConfig


# Keep this at the bottom of the builtin command list
class VersionCommand(
    RootCommand,
    cmd="version",
    help="Print version information",
):
    @classmethod
    def main(cls, cfg: "GlobalConfig", args: argparse.Namespace) -> int:
        return cli_version(cfg, args)


def cli_version(cfg: "GlobalConfig", args: argparse.Namespace) -> int:
    from ..version import COPYRIGHT_NOTICE, USTAR_VERSION

    cfg.logger.stdout(f"ustar {USTAR_VERSION}")
    cfg.logger.stdout("")
    cfg.logger.stdout(COPYRIGHT_NOTICE)
    return 0
