from tests.fixtures import (  # noqa: F401 # fixtures are registered by name
    mock_gm,
    ustar_cli_runner,
    ustar_logger,
    xdg_env,
)
