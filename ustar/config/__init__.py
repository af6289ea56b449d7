import os
import pathlib
import sys
from typing import Any, Final, Iterable, Mapping, TypedDict, TYPE_CHECKING

if TYPE_CHECKING:
    from typing_extensions import NotRequired, Self

    from ..log import UstarLogger
    from ..utils.global_mode import ProvidesGlobalMode
    from ..utils.xdg_basedir import XDGPathEntry

from ..archive.header import BLOCK_SIZE
from . import errors
from . import schema


if sys.platform == "linux":
    PRESET_GLOBAL_CONFIG_LOCATIONS: Final[list[str]] = [
        "/usr/share/ustar/config.toml",
        "/usr/local/share/ustar/config.toml",
    ]
else:
    PRESET_GLOBAL_CONFIG_LOCATIONS: Final[list[str]] = []

DEFAULT_APP_NAME: Final = "ustar"


class GlobalConfigReaderType(TypedDict):
    use_seek: "NotRequired[bool]"
    copy_buffer_blocks: "NotRequired[int]"


class GlobalConfigExtractType(TypedDict):
    allow_unsafe_paths: "NotRequired[bool]"


class GlobalConfigRootType(TypedDict):
    reader: "NotRequired[GlobalConfigReaderType]"
    extract: "NotRequired[GlobalConfigExtractType]"


class GlobalConfig:
    def __init__(
        self,
        gm: "ProvidesGlobalMode",
        logger: "UstarLogger",
        env: Mapping[str, str] | None = None,
    ) -> None:
        from ..utils.xdg_basedir import XDGBaseDir

        self._gm = gm
        self.logger = logger

        # all defaults
        self.use_seek = True
        self.copy_buffer_blocks = 1
        self.allow_unsafe_paths = False

        self._dirs = XDGBaseDir(DEFAULT_APP_NAME, env)

    @property
    def is_debug(self) -> bool:
        return self._gm.is_debug

    @property
    def is_porcelain(self) -> bool:
        return self._gm.is_porcelain

    @property
    def copy_bufsize(self) -> int:
        return self.copy_buffer_blocks * BLOCK_SIZE

    def _apply_config(self, config_data: GlobalConfigRootType | Any) -> None:
        for section, content in config_data.items():
            try:
                schema.validate_section(section)
            except errors.InvalidConfigSectionError as e:
                self.logger.W(f"{e}; ignoring")
                continue

            if not isinstance(content, dict):
                self.logger.W(f"config section [yellow]{section}[/] is not a table; ignoring")
                continue

            for sel, val in content.items():
                key = f"{section}.{sel}"
                try:
                    schema.validate_config_value(key, val)
                except (
                    errors.InvalidConfigKeyError,
                    errors.InvalidConfigValueTypeError,
                    errors.InvalidConfigValueError,
                ) as e:
                    self.logger.W(f"{e}; ignoring")
                    continue

                self._set_by_key(section, sel, val)

    def _set_by_key(self, section: str, sel: str, val: Any) -> None:
        if section == schema.SECTION_READER:
            if sel == schema.KEY_READER_USE_SEEK:
                self.use_seek = val
            elif sel == schema.KEY_READER_COPY_BUFFER_BLOCKS:
                self.copy_buffer_blocks = val
        elif section == schema.SECTION_EXTRACT:
            if sel == schema.KEY_EXTRACT_ALLOW_UNSAFE_PATHS:
                self.allow_unsafe_paths = val

    def iter_preset_configs(self) -> "Iterable[XDGPathEntry]":
        """
        Yields possible config files in all preset config path locations,
        sorted by precedence from lowest to highest (so that each file may be
        simply applied consecutively).
        """

        from ..utils.xdg_basedir import XDGPathEntry

        for path in PRESET_GLOBAL_CONFIG_LOCATIONS:
            yield XDGPathEntry(pathlib.Path(path), True)

    def iter_xdg_configs(self) -> "Iterable[XDGPathEntry]":
        """
        Yields possible config files in all XDG config paths, sorted by precedence
        from lowest to highest (so that each file may be simply applied consecutively).
        """

        from ..utils.xdg_basedir import XDGPathEntry

        entries = list(self._dirs.app_config_dirs)
        for e in reversed(entries):
            yield XDGPathEntry(e.path / "config.toml", e.is_global)

    @property
    def local_user_config_file(self) -> pathlib.Path:
        return self._dirs.app_config / "config.toml"

    def try_apply_config_file(self, path: os.PathLike[Any]) -> None:
        import tomlkit

        try:
            with open(path, "rb") as fp:
                data: Any = tomlkit.load(fp).unwrap()
        except FileNotFoundError:
            return

        self.logger.D(f"applying config: {data}")
        self._apply_config(data)

    @classmethod
    def load_from_config(
        cls,
        gm: "ProvidesGlobalMode",
        logger: "UstarLogger",
        env: Mapping[str, str] | None = None,
    ) -> "Self":
        obj = cls(gm, logger, env)

        for config_path, _ in obj.iter_preset_configs():
            obj.logger.D(f"trying config file from preset location: {config_path}")
            obj.try_apply_config_file(config_path)

        for config_path, _ in obj.iter_xdg_configs():
            obj.logger.D(f"trying config file from XDG path: {config_path}")
            obj.try_apply_config_file(config_path)

        return obj
