"""
Common test fixtures and configuration.

Provides temporary workspaces, sample journal exports, and in-memory stand-ins
for a browser page so the export driver can be exercised without launching a
real browser.
"""
import inspect
import json
import logging
import shutil
import sys
import tempfile
import zipfile
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

import pytest

# Add src directory to Python path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture(autouse=True)
def setup_logging():
    """Configure logging for tests."""
    logging.basicConfig(level=logging.DEBUG)
    yield


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield Path(temp_dir)
    shutil.rmtree(temp_dir)


@pytest.fixture
def cli_runner():
    """Fixture providing Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()


def _raw_entry(
    uuid: str,
    title: Optional[str],
    created: str,
    modified: Optional[str] = None,
    journal: str = "Blog Public",
    tags: Optional[List[str]] = None,
    **extra: Any,
) -> Dict[str, Any]:
    entry = {
        "uuid": uuid,
        "creationDate": created,
        "text": f"Body of {title or uuid}",
        "tags": tags or [],
        "journal": journal,
    }
    if title is not None:
        entry["title"] = title
    if modified is not None:
        entry["modifiedDate"] = modified
    entry.update(extra)
    return entry


@pytest.fixture
def raw_entry():
    """Factory for one entry as it appears in a journal export."""
    return _raw_entry


@pytest.fixture
def sample_export():
    """A small export: two draft entries, one published, one from elsewhere."""
    return {
        "metadata": {"version": "1.0"},
        "entries": [
            _raw_entry(
                "AAA111",
                "First Post",
                "2024-01-15T10:30:00Z",
                "2024-01-16T08:00:00Z",
                tags=["Software", "python"],
                photos=[{"identifier": "PHOTO1", "caption": "A desk"}],
            ),
            _raw_entry("BBB222", "Second Post", "2024-02-01T09:00:00Z"),
            _raw_entry(
                "CCC333", "Already Live", "2023-12-24T12:00:00Z", journal="Blog Live"
            ),
            _raw_entry("DDD444", "Grocery list", "2024-02-02T07:00:00Z", journal="Personal"),
        ],
    }


@pytest.fixture
def write_export(temp_dir):
    """
    Factory writing an export to disk.

    kind="json" writes a flat document, kind="zip" a zip archive with the
    document stored as ``member`` (pass member=None for a zip with no JSON).
    """

    def _write(
        document: Any,
        kind: str = "json",
        name: str = "export",
        member: Optional[str] = "Blog Public.json",
        extra_members: Optional[Dict[str, bytes]] = None,
    ) -> Path:
        if kind == "json":
            path = temp_dir / f"{name}.json"
            path.write_text(json.dumps(document), encoding="utf-8")
            return path

        path = temp_dir / f"{name}.zip"
        with zipfile.ZipFile(path, "w") as archive:
            if member is not None:
                archive.writestr(member, json.dumps(document))
            for extra_name, content in (extra_members or {}).items():
                archive.writestr(extra_name, content)
        return path

    return _write


@pytest.fixture
def workspace_dir(temp_dir, monkeypatch):
    """A directory holding a minimal inkwell.yml, with credentials in the env."""
    monkeypatch.setenv("DAYONE_EMAIL", "writer@example.com")
    monkeypatch.setenv("DAYONE_PASSWORD", "hunter2")
    monkeypatch.delenv("DAYONE_JOURNAL_ID", raising=False)
    (temp_dir / "inkwell.yml").write_text(
        """name: "test-blog"
source:
  email: "${DAYONE_EMAIL}"
  password: "${DAYONE_PASSWORD}"
journals:
  draft: "${DAYONE_JOURNAL_ID:-Blog Public}"
  published: "Blog Live"
browser:
  per_candidate_timeout: 0.05
  poll_interval: 0.01
  settle_delay: 0
"""
    )
    return temp_dir


class FakeLocator:
    """Stand-in for a playwright Locator, driven by its FakePage."""

    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    @property
    def first(self) -> "FakeLocator":
        return self

    async def is_visible(self) -> bool:
        self.page.probed.append(self.selector)
        return self.selector in self.page.visible

    async def click(self) -> None:
        self.page.clicks.append(self.selector)
        callback = self.page.on_click.get(self.selector)
        if callback is not None:
            result = callback()
            if inspect.isawaitable(result):
                await result

    async def fill(self, value: str) -> None:
        self.page.filled[self.selector] = value

    async def select_option(self, value: str) -> None:
        self.page.selected[self.selector] = value


class FakeResponse:
    def __init__(
        self,
        url: str,
        body: bytes,
        content_type: str = "application/json",
        ok: bool = True,
    ):
        self.url = url
        self.ok = ok
        self.headers = {"content-type": content_type}
        self._body = body

    async def body(self) -> bytes:
        return self._body


class FakeDownload:
    def __init__(self, suggested_filename: str, content: bytes):
        self.suggested_filename = suggested_filename
        self.content = content

    async def save_as(self, path: str) -> None:
        Path(path).write_bytes(self.content)


class FakePage:
    """
    Stand-in for a playwright Page.

    ``visible`` holds the selectors that currently match a visible element;
    ``on_click`` maps a selector to a callback run when it is clicked.
    """

    def __init__(self, visible=(), url: str = "about:blank"):
        self.visible = set(visible)
        self.url = url
        self.clicks: List[str] = []
        self.probed: List[str] = []
        self.filled: Dict[str, str] = {}
        self.selected: Dict[str, str] = {}
        self.on_click: Dict[str, Callable[[], Any]] = {}
        self.listeners: Dict[str, List[Callable[[Any], None]]] = {}
        self.visited: List[str] = []

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def goto(self, url: str, **kwargs: Any) -> None:
        self.url = url
        self.visited.append(url)

    async def wait_for_load_state(self, *args: Any, **kwargs: Any) -> None:
        return None

    async def reload(self, **kwargs: Any) -> None:
        return None

    async def screenshot(self, path: str, full_page: bool = False) -> None:
        Path(path).write_bytes(b"\x89PNG")

    async def content(self) -> str:
        return "<html><body>fake</body></html>"

    def on(self, event: str, handler: Callable[[Any], None]) -> None:
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Callable[[Any], None]) -> None:
        self.listeners.get(event, []).remove(handler)

    def emit(self, event: str, payload: Any) -> None:
        for handler in list(self.listeners.get(event, [])):
            handler(payload)


@pytest.fixture
def fake_page():
    """Factory for FakePage instances."""
    return FakePage


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def fake_download():
    return FakeDownload
