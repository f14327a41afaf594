import pytest

from omniscient.category import CATEGORY_RULES, Categorizer


@pytest.mark.parametrize(
    ("command", "expected"),
    [
        ("git commit -m 'x'", "git"),
        ("/usr/bin/git log", "git"),
        ("docker compose up", "docker"),
        ("uv pip install rich", "package"),
        ("kubectl get pods", "kubernetes"),
        ("terraform apply", "cloud"),
        ("sudo systemctl restart nginx", "system"),
        ("ssh host", "network"),
        ("make -j8", "build"),
        ("psql -d app", "database"),
        ("nvim README.md", "editor"),
        ("hg log", "vcs"),
        ("ls -la", "file"),
        ("./run-tests.sh", "other"),
        ("   ", "other"),
    ],
)
def test_categorize(command: str, expected: str) -> None:
    assert Categorizer().categorize(command) == expected


def test_categories_lists_every_label() -> None:
    categorizer = Categorizer()
    assert categorizer.categories() == sorted(CATEGORY_RULES)
    assert categorizer.rule_count == sum(len(programs) for programs in CATEGORY_RULES.values())


def test_custom_rules() -> None:
    categorizer = Categorizer({"python": ("python", "pytest")})
    assert categorizer.categorize("pytest -q") == "python"
    assert categorizer.categorize("git status") == "other"
