import pytest

from omniscient.shell import SUPPORTED_SHELLS, ShellHook, detect_shell


@pytest.mark.parametrize("shell", SUPPORTED_SHELLS)
def test_hook_calls_capture(shell: str) -> None:
    hook = ShellHook(shell)
    script = hook.generate()
    assert "omniscient capture --exit-code" in script
    assert "--duration" in script
    assert f"({shell})" in script


def test_zsh_hook_uses_add_zsh_hook() -> None:
    script = ShellHook("zsh").generate()
    assert "add-zsh-hook preexec _omniscient_preexec" in script
    assert "add-zsh-hook precmd _omniscient_precmd" in script


def test_bash_hook_chains_prompt_command() -> None:
    script = ShellHook("bash").generate()
    assert "PROMPT_COMMAND=" in script
    assert "trap '_omniscient_preexec' DEBUG" in script


def test_installation_instructions_name_rc_file() -> None:
    hook = ShellHook("Bash")
    assert hook.shell == "bash"
    assert "~/.bashrc" in hook.installation_instructions()
    assert ShellHook("zsh").rc_file() == "~/.zshrc"


def test_unsupported_shell() -> None:
    with pytest.raises(ValueError, match="Unsupported shell"):
        ShellHook("fish")


def test_detect_shell() -> None:
    assert detect_shell("/bin/zsh") == "zsh"
    assert detect_shell("/usr/local/bin/bash") == "bash"
    with pytest.raises(ValueError):
        detect_shell("/usr/bin/fish")
    with pytest.raises(ValueError):
        detect_shell("")


def test_zsh_hook_loads_datetime_module() -> None:
    script = ShellHook("zsh").generate()
    assert "zmodload zsh/datetime" in script
    assert script.index("zmodload zsh/datetime") < script.index("$EPOCHREALTIME")
