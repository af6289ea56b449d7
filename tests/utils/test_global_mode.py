from ustar.utils.global_mode import (
    ENV_DEBUG,
    EnvGlobalModeProvider,
    is_env_var_truthy,
)


def test_is_env_var_truthy() -> None:
    assert is_env_var_truthy({"X": "1"}, "X")
    assert is_env_var_truthy({"X": "YES"}, "X")
    assert is_env_var_truthy({"X": "true"}, "X")
    assert not is_env_var_truthy({"X": "0"}, "X")
    assert not is_env_var_truthy({"X": ""}, "X")
    assert not is_env_var_truthy({}, "X")


def test_env_global_mode_provider() -> None:
    gm = EnvGlobalModeProvider({ENV_DEBUG: "1"}, ["ustar", "list", "a.tar"])
    assert gm.argv0 == "ustar"
    assert gm.is_debug
    assert not gm.is_porcelain

    gm = EnvGlobalModeProvider({}, ["ustar", "--porcelain", "list", "a.tar"])
    assert not gm.is_debug
    assert gm.is_porcelain

    # only recognized right after the program name
    gm = EnvGlobalModeProvider({}, ["ustar", "list", "--porcelain"])
    assert not gm.is_porcelain

    gm.is_porcelain = True
    assert gm.is_porcelain

    gm = EnvGlobalModeProvider({}, [])
    assert gm.argv0 == ""
