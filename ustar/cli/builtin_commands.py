from . import archive_cli
from . import version_cli

# Should come last
del archive_cli
del version_cli
