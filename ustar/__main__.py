#!/usr/bin/env python3

import os
import sys

from ustar.utils.global_mode import EnvGlobalModeProvider


def entrypoint() -> None:
    gm = EnvGlobalModeProvider(os.environ, sys.argv)

    from ustar.cli.main import main
    from ustar.config import GlobalConfig
    from ustar.log import UstarConsoleLogger

    logger = UstarConsoleLogger(gm)

    if not sys.argv:
        logger.F("no argv?")
        sys.exit(1)

    gc = GlobalConfig.load_from_config(gm, logger)
    sys.exit(main(gm, gc, sys.argv))


if __name__ == "__main__":
    entrypoint()
