from __future__ import annotations

import os
from pathlib import Path
from typing import Final

SUPPORTED_SHELLS: Final[tuple[str, ...]] = ("zsh", "bash")

_ZSH_HOOK = """\
# omniscient shell integration (zsh)
zmodload zsh/datetime

_omniscient_preexec() {
    export _OMNISCIENT_START=$EPOCHREALTIME
}

_omniscient_precmd() {
    local exit_code=$?
    local cmd=$(fc -ln -1 | sed 's/^[[:space:]]*//')
    if [[ -n "$_OMNISCIENT_START" ]]; then
        local end=$EPOCHREALTIME
        local duration=$(( (end - _OMNISCIENT_START) * 1000 ))
        ( omniscient capture --exit-code "$exit_code" --duration "${duration%.*}" -- "$cmd" & ) 2>/dev/null
        unset _OMNISCIENT_START
    fi
}

autoload -Uz add-zsh-hook
add-zsh-hook preexec _omniscient_preexec
add-zsh-hook precmd _omniscient_precmd
"""

_BASH_HOOK = """\
# omniscient shell integration (bash)
_omniscient_preexec() {
    if [[ -z "$_OMNISCIENT_START" ]]; then
        _OMNISCIENT_START=$(date +%s%3N)
    fi
}

_omniscient_precmd() {
    local exit_code=$?
    local cmd
    cmd=$(HISTTIMEFORMAT= history 1 | sed 's/^[ ]*[0-9]*[ ]*//')
    if [[ -n "$_OMNISCIENT_START" ]]; then
        local end
        end=$(date +%s%3N)
        local duration=$(( end - _OMNISCIENT_START ))
        ( omniscient capture --exit-code "$exit_code" --duration "$duration" -- "$cmd" & ) 2>/dev/null
        unset _OMNISCIENT_START
    fi
}

trap '_omniscient_preexec' DEBUG
PROMPT_COMMAND="_omniscient_precmd${PROMPT_COMMAND:+; $PROMPT_COMMAND}"
"""


def detect_shell(shell_env: str | None = None) -> str:
    value = shell_env if shell_env is not None else os.environ.get("SHELL", "")
    name = Path(value).name if value else ""
    if name in SUPPORTED_SHELLS:
        return name
    raise ValueError(
        f"Unsupported shell '{name or value}'. Supported shells: {', '.join(SUPPORTED_SHELLS)}"
    )


class ShellHook:
    def __init__(self, shell: str):
        shell = shell.strip().lower()
        if shell not in SUPPORTED_SHELLS:
            raise ValueError(
                f"Unsupported shell '{shell}'. Supported shells: {', '.join(SUPPORTED_SHELLS)}"
            )
        self.shell = shell

    def generate(self) -> str:
        return _ZSH_HOOK if self.shell == "zsh" else _BASH_HOOK

    def rc_file(self) -> str:
        return "~/.zshrc" if self.shell == "zsh" else "~/.bashrc"

    def installation_instructions(self) -> str:
        return (
            f"Add omniscient to {self.shell}:\n"
            f"  omniscient init --shell {self.shell} >> {self.rc_file()}\n"
            f"Then restart your shell or run: source {self.rc_file()}"
        )
