import importlib.metadata
from typing import Final


def _get_version() -> str:
    try:
        return importlib.metadata.version("ustar")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0+unknown"


USTAR_VERSION: Final = _get_version()

COPYRIGHT_NOTICE: Final = """\
License: Apache-2.0 <https://www.apache.org/licenses/LICENSE-2.0>
\
"""
