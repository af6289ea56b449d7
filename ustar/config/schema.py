from typing import Final, Sequence

from .errors import (
    InvalidConfigKeyError,
    InvalidConfigSectionError,
    InvalidConfigValueError,
    InvalidConfigValueTypeError,
)


def parse_config_key(key: str | Sequence[str]) -> list[str]:
    if isinstance(key, str):
        return key.split(".")
    return list(key)


SECTION_READER: Final = "reader"
KEY_READER_USE_SEEK: Final = "use_seek"
KEY_READER_COPY_BUFFER_BLOCKS: Final = "copy_buffer_blocks"

SECTION_EXTRACT: Final = "extract"
KEY_EXTRACT_ALLOW_UNSAFE_PATHS: Final = "allow_unsafe_paths"


def validate_section(section: str) -> None:
    if section not in (SECTION_READER, SECTION_EXTRACT):
        raise InvalidConfigSectionError(section)


def get_expected_type_for_config_key(key: str | Sequence[str]) -> type:
    parsed_key = parse_config_key(key)
    if len(parsed_key) != 2:
        # for now there's no nested config option
        raise InvalidConfigKeyError(key)

    section, sel = parsed_key
    validate_section(section)
    if section == SECTION_READER:
        if sel == KEY_READER_USE_SEEK:
            return bool
        elif sel == KEY_READER_COPY_BUFFER_BLOCKS:
            return int
    elif section == SECTION_EXTRACT:
        if sel == KEY_EXTRACT_ALLOW_UNSAFE_PATHS:
            return bool

    raise InvalidConfigKeyError(key)


def validate_config_value(key: str | Sequence[str], val: object | None) -> None:
    expected = get_expected_type_for_config_key(key)
    # bool is a subclass of int, and must not pass for an int option
    if not isinstance(val, expected) or (expected is int and isinstance(val, bool)):
        raise InvalidConfigValueTypeError(key, val, expected)

    parsed_key = parse_config_key(key)
    if parsed_key == [SECTION_READER, KEY_READER_COPY_BUFFER_BLOCKS]:
        assert isinstance(val, int)
        if val < 1:
            raise InvalidConfigValueError(key, val, "must be at least 1")
