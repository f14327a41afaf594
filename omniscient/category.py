from __future__ import annotations

from typing import Final

from .store.types import DEFAULT_CATEGORY

CATEGORY_RULES: Final[dict[str, tuple[str, ...]]] = {
    "git": ("git", "gh"),
    "docker": ("docker", "docker-compose", "podman"),
    "package": (
        "npm",
        "yarn",
        "pnpm",
        "cargo",
        "pip",
        "pip3",
        "uv",
        "gem",
        "bundle",
        "apt",
        "apt-get",
        "brew",
        "yum",
        "dnf",
        "pacman",
    ),
    "file": (
        "ls",
        "cd",
        "mkdir",
        "rm",
        "rmdir",
        "cp",
        "mv",
        "cat",
        "less",
        "more",
        "head",
        "tail",
        "touch",
        "find",
        "grep",
        "awk",
        "sed",
    ),
    "network": (
        "curl",
        "wget",
        "ping",
        "ssh",
        "scp",
        "rsync",
        "nc",
        "netcat",
        "telnet",
        "ftp",
        "sftp",
    ),
    "build": ("make", "cmake", "ninja", "bazel", "gradle", "mvn", "ant"),
    "database": ("psql", "mysql", "sqlite3", "mongo", "redis-cli", "mongosh"),
    "kubernetes": ("kubectl", "k9s", "helm", "minikube", "kind"),
    "cloud": ("aws", "gcloud", "az", "terraform", "terragrunt", "pulumi"),
    "editor": ("vim", "nvim", "nano", "emacs", "code", "subl"),
    "system": (
        "sudo",
        "systemctl",
        "service",
        "journalctl",
        "top",
        "htop",
        "ps",
        "kill",
        "killall",
        "df",
        "du",
        "free",
        "uptime",
    ),
    "vcs": ("svn", "hg", "bzr"),
}


class Categorizer:
    def __init__(self, rules: dict[str, tuple[str, ...]] | None = None):
        self.rules: dict[str, str] = {}
        for category, programs in (rules or CATEGORY_RULES).items():
            for program in programs:
                self.rules[program] = category

    def categorize(self, command: str) -> str:
        parts = command.split()
        if not parts:
            return DEFAULT_CATEGORY
        program = parts[0].rsplit("/", 1)[-1]
        return self.rules.get(program, DEFAULT_CATEGORY)

    def categories(self) -> list[str]:
        return sorted(set(self.rules.values()))

    @property
    def rule_count(self) -> int:
        return len(self.rules)
