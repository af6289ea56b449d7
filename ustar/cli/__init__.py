from typing import Final

# Should be all-lower
USTAR_ENTRYPOINT_NAME: Final = "ustar"
