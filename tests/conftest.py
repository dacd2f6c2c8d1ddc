"""Pytest configuration and fixtures."""

from pathlib import Path

import pytest
from dotenv import load_dotenv


# Load .env file before running tests
# Use override=True to ensure .env values take precedence over system environment
env_path = Path(__file__).parent.parent / ".env"
if env_path.exists():
    load_dotenv(env_path, override=True)


LOGIN_TEST = """package com.acme.auth;

import org.junit.jupiter.api.Test;
import com.acme.annotations.UnittestCaseInfo;

public class LoginTest {

    @Test
    @UnittestCaseInfo(
        title = "Login with valid credentials",
        author = "qa-team",
        status = "DONE",
        tags = {"smoke", "TC-900"},
        testCaseIds = {"TC-100", "TC-101"}
    )
    public void loginSucceeds() {
        assertTrue(true);
    }

    @Test
    public void loginFailsWithBadPassword(String user, int attempts) {
        assertFalse(false);
    }

    private void helper() {
    }
}
"""

ORDER_TESTS = """package com.acme.orders;

import org.junit.Test;

public class OrderServiceTests {

    @Test
    @Tag("ORD-7")
    public void createsOrder() {
    }
}

class OrderFixtures {
    static String sample() {
        return "order";
    }
}
"""

BROKEN_SOURCE = """package com.acme.broken;

public class BrokenTest {
    @Test
    public void missingBrace( {
"""


def write_file(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def make_java_repository(
    root: Path,
    name: str = "auth-service",
    sources: dict[str, str] | None = None,
    remote_url: str | None = None,
) -> Path:
    """Create a directory that looks like a cloned Maven repository."""
    repo = root / name
    git_dir = repo / ".git"
    git_dir.mkdir(parents=True, exist_ok=True)
    config = "[core]\n\trepositoryformatversion = 0\n"
    if remote_url:
        config += f'[remote "origin"]\n\turl = {remote_url}\n\tfetch = +refs/heads/*:refs/remotes/origin/*\n'
    (git_dir / "config").write_text(config, encoding="utf-8")
    (git_dir / "HEAD").write_text("ref: refs/heads/main\n", encoding="utf-8")

    if sources is None:
        sources = {"com/acme/auth/LoginTest.java": LOGIN_TEST}
    for relative, content in sources.items():
        write_file(repo / "src" / "test" / "java" / relative, content)
    write_file(repo / "pom.xml", "<project/>\n")
    return repo


@pytest.fixture
def java_repository(tmp_path):
    """A repository with one annotated test class."""
    return make_java_repository(tmp_path, remote_url="git@git.acme.io:auth/auth-service.git")


@pytest.fixture
def hub_directory(tmp_path):
    hub = tmp_path / "hub"
    hub.mkdir()
    return hub


@pytest.fixture
def sqlite_url(tmp_path):
    """File-backed SQLite URL; in-memory databases are per-connection."""
    return f"sqlite+aiosqlite:///{tmp_path / 'test_analytics.db'}"


@pytest.fixture
def repository_factory(tmp_path):
    """Build repositories under tmp_path: factory(name, sources=None, remote_url=None)."""

    def factory(name: str, sources: dict[str, str] | None = None, remote_url: str | None = None) -> Path:
        return make_java_repository(tmp_path / "repos", name, sources, remote_url)

    return factory


@pytest.fixture
def java_sources():
    """Sample source texts keyed by role."""
    return {"login": LOGIN_TEST, "orders": ORDER_TESTS, "broken": BROKEN_SOURCE}
