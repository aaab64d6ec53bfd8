"""
Export driver: logs into the journaling web app and captures a JSON export.

The web app has no export API, so the driver works the UI the way a person
would, in four steps:

1. authenticate    - fill in the login form and check we left the login page
2. select_journal  - open the sidebar and pick the journal (soft failure)
3. open_export     - find the export control, directly or through a menu
4. capture_export  - start the export and catch the file it produces

Every element is found through the SelectorResolver, so markup changes are
fixed by editing selector data, not this module. A step that fails leaves a
screenshot and an HTML dump in the diagnostics directory.

The driver never retries a whole export. Short waits for elements to appear
happen inside selector resolution; anything else ends the run and the caller
decides whether to try again.
"""
import asyncio
import mimetypes
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Optional, Sequence
from uuid import uuid4

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright
from pydantic import BaseModel, Field

from inkwell.messages import get_logger
from inkwell.utility.exceptions import (
    AuthenticationFailed,
    DownloadTimeout,
    ExportArtifactNotFound,
    ExportError,
    ExportSurfaceUnreachable,
)
from inkwell.utility.retry import PollTimeout, poll_until
from inkwell.utility.run_id import timestamp_slug
from inkwell.utility.settings import settings

from .models import Credentials, utc_now
from .selectors import SelectorResolver, SelectorTable

_SKIPPED_CONTENT_TYPES = ("text/html", "javascript", "text/css", "image/", "font/")


class BrowserConfig(BaseModel):
    """Browser and timing options (seconds)."""

    headless: bool = True
    executable_path: Optional[str] = None
    per_candidate_timeout: float = Field(default=settings.timeouts.per_candidate, gt=0)
    poll_interval: float = Field(default=settings.timeouts.poll_interval, gt=0)
    settle_delay: float = Field(default=settings.timeouts.settle, ge=0)
    navigation_timeout: float = Field(default=settings.timeouts.navigation, gt=0)
    capture_deadline: float = Field(default=settings.timeouts.capture_deadline, gt=0)
    scan_grace: float = Field(default=settings.timeouts.scan_grace, ge=0)


class ExportDriver:
    """
    Drives one browser session per export.

    Args:
        scratch_dir: Where captured exports are saved
        diagnostics_dir: Where failure screenshots and HTML dumps go
        browser: Browser and timing options
        selectors: Selector table (built-in candidates plus overrides)
    """

    def __init__(
        self,
        scratch_dir: Path,
        diagnostics_dir: Path,
        browser: Optional[BrowserConfig] = None,
        selectors: Optional[SelectorTable] = None,
    ):
        self.scratch_dir = Path(scratch_dir)
        self.diagnostics_dir = Path(diagnostics_dir)
        self.browser = browser or BrowserConfig()
        self.resolver = SelectorResolver(
            selectors or SelectorTable(),
            per_candidate_timeout=self.browser.per_candidate_timeout,
            poll_interval=self.browser.poll_interval,
        )
        self.artifacts = settings.artifacts
        self.logger = get_logger("inkwell.exporter")

    async def export_journal(self, credentials: Credentials, journal_name: str) -> Path:
        """
        Export one journal and return the path of the captured file.

        Raises:
            ExportError: Any export failure (see the subclasses)
        """
        results = await self.export_journals(credentials, [journal_name])
        return results[journal_name]

    async def export_journals(
        self,
        credentials: Credentials,
        journal_names: Sequence[str],
        optional: Sequence[str] = (),
    ) -> Dict[str, Optional[Path]]:
        """
        Export several journals in one logged-in browser session.

        Args:
            credentials: Login details
            journal_names: Journals that must export; a failure ends the session
            optional: Journals exported afterwards whose failure is only logged

        Returns:
            Journal name to captured file (None for a failed optional export)
        """
        self.scratch_dir.mkdir(parents=True, exist_ok=True)
        async with async_playwright() as playwright:
            try:
                browser = await playwright.chromium.launch(
                    headless=self.browser.headless,
                    executable_path=self.browser.executable_path,
                )
            except PlaywrightError as e:
                raise ExportError(
                    f"Could not start the browser: {e}. "
                    "Run 'playwright install chromium' first."
                ) from e
            try:
                context = await browser.new_context(accept_downloads=True)
                page = await context.new_page()
                page.set_default_timeout(self.browser.navigation_timeout * 1000)
                return await self.run_session(
                    page, credentials, journal_names, optional
                )
            finally:
                await browser.close()

    async def run_session(
        self,
        page: Any,
        credentials: Credentials,
        journal_names: Sequence[str],
        optional: Sequence[str] = (),
    ) -> Dict[str, Optional[Path]]:
        """Authenticate once, then export each journal on ``page``."""
        await self.authenticate(page, credentials)

        results: Dict[str, Optional[Path]] = {}
        for index, journal_name in enumerate(list(journal_names) + list(optional)):
            try:
                if index > 0:
                    await self._reset_page(page)
                results[journal_name] = await self.export_current(page, journal_name)
            except ExportError as e:
                if journal_name not in optional:
                    raise
                self.logger.warning(f"Optional export of '{journal_name}' failed: {e}")
                results[journal_name] = None
        return results

    async def _reset_page(self, page: Any) -> None:
        try:
            await page.reload(wait_until="networkidle")
        except PlaywrightError as e:
            raise ExportError(f"Could not reload the app between exports: {e}") from e

    async def export_current(self, page: Any, journal_name: str) -> Path:
        """Steps 2-4 on an already authenticated page."""
        await self.select_journal(page, journal_name)
        await self.open_export(page)
        return await self.capture_export(page, journal_name)

    @asynccontextmanager
    async def step(self, page: Any, name: str) -> AsyncIterator[Any]:
        """Run one step, leaving diagnostics behind if it raises."""
        logger = get_logger(f"inkwell.step.{name}")
        logger.debug("started")
        try:
            yield logger
        except PlaywrightError as e:
            await self.capture_diagnostics(page, name)
            raise ExportError(f"Browser error during {name}: {e}") from e
        except Exception:
            await self.capture_diagnostics(page, name)
            raise

    async def capture_diagnostics(self, page: Any, name: str) -> List[Path]:
        """Save a screenshot and the page HTML. Best effort; never raises."""
        stem = f"{name}-{timestamp_slug(utc_now())}"
        written: List[Path] = []
        try:
            self.diagnostics_dir.mkdir(parents=True, exist_ok=True)
            screenshot = self.diagnostics_dir / f"{stem}.png"
            await page.screenshot(path=str(screenshot), full_page=True)
            written.append(screenshot)
            html = self.diagnostics_dir / f"{stem}.html"
            html.write_text(await page.content(), encoding="utf-8")
            written.append(html)
        except (PlaywrightError, OSError) as e:
            self.logger.warning(f"Could not save diagnostics for {name}: {e}")
        if written:
            self.logger.info(
                f"Diagnostics for {name}: {self.logger.path(str(written[0].parent))}"
            )
        return written

    async def authenticate(self, page: Any, credentials: Credentials) -> None:
        """
        Log in. Failure here is never transient.

        Raises:
            AuthenticationFailed: If the page is still the login page afterwards
            StepLocatorExhausted: If the login form could not be found
        """
        async with self.step(page, "authenticate") as log:
            log.info("Logging in")
            await page.goto(credentials.login_url, wait_until="networkidle")

            email = await self.resolver.require(page, "email")
            await email.fill(credentials.email)
            password = await self.resolver.require(page, "password")
            await password.fill(credentials.password.get_secret_value())
            submit = await self.resolver.require(page, "login_submit")
            await submit.click()

            try:
                await page.wait_for_load_state(
                    "networkidle", timeout=self.browser.navigation_timeout * 1000
                )
            except PlaywrightTimeoutError:
                log.debug("Page kept loading after login; checking location anyway")

            if "login" in page.url.lower():
                raise AuthenticationFailed(
                    "Login was rejected: still on the login page after submitting"
                )
            log.success("Logged in")

    async def select_journal(self, page: Any, journal_name: str) -> bool:
        """
        Switch to ``journal_name``. Returns False if it could not be found.

        Not finding the journal is not fatal: the export is filtered by journal
        name afterwards, so the run continues with whatever journal is open.
        """
        async with self.step(page, "select_journal") as log:
            toggle = await self.resolver.resolve(page, "sidebar_toggle")
            if toggle.ok:
                await toggle.element.click()
                await asyncio.sleep(self.browser.settle_delay)

            journal = await self.resolver.resolve(page, "journal", journal=journal_name)
            if not journal.ok:
                log.warning(
                    f"Journal '{journal_name}' not found in the sidebar; "
                    "exporting the current journal and filtering by name"
                )
                return False

            await journal.element.click()
            await asyncio.sleep(self.browser.settle_delay)
            log.info(f"Selected journal '{journal_name}'")
            return True

    async def open_export(self, page: Any) -> None:
        """
        Reach the export dialog, directly or through the settings menu.

        Raises:
            ExportSurfaceUnreachable: If no export control can be found
        """
        async with self.step(page, "open_export") as log:
            direct = await self.resolver.resolve(page, "export")
            attempted = list(direct.attempted)

            if not direct.ok:
                menu = await self.resolver.resolve(page, "menu")
                attempted.extend(menu.attempted)
                if menu.ok:
                    await menu.element.click()
                    await asyncio.sleep(self.browser.settle_delay)
                    direct = await self.resolver.resolve(page, "export")
                    attempted.extend(direct.attempted)

            if not direct.ok:
                raise ExportSurfaceUnreachable("export", attempted)

            await direct.element.click()
            await asyncio.sleep(self.browser.settle_delay)
            log.info(f"Opened export via {direct.candidate}")

    async def capture_export(self, page: Any, journal_name: str) -> Path:
        """
        Start the export and return the file it produced.

        The export is caught from the network (any response whose URL looks
        like a download or export) or from a browser download event. If neither
        arrives before the capture deadline, the scratch directory is scanned
        for an export-looking file written since the export was started.

        Raises:
            StepLocatorExhausted: If the final export button cannot be found
            DownloadTimeout: If nothing arrived before the deadline
            ExportArtifactNotFound: If capture failed and no file was found
        """
        async with self.step(page, "capture_export") as log:
            await self._choose_json_format(page, log)
            submit = await self.resolver.require(page, "export_submit")

            loop = asyncio.get_running_loop()
            captured: asyncio.Future = loop.create_future()
            pending: List[asyncio.Task] = []

            def on_response(response: Any) -> None:
                if not captured.done() and self._looks_like_export(response):
                    pending.append(
                        asyncio.ensure_future(self._buffer_response(response, captured))
                    )

            def on_download(download: Any) -> None:
                if not captured.done():
                    pending.append(
                        asyncio.ensure_future(self._save_download(download, captured))
                    )

            started = time.time()
            page.on("response", on_response)
            page.on("download", on_download)
            timed_out = False
            try:
                await submit.click()
                log.info(f"Export of '{journal_name}' started; waiting for the file")
                path = await asyncio.wait_for(
                    captured, timeout=self.browser.capture_deadline
                )
                log.success(f"Captured export: {log.path(str(path))}")
                return path
            except asyncio.TimeoutError:
                timed_out = True
                log.warning(
                    f"No export captured within {self.browser.capture_deadline:g}s; "
                    "scanning the scratch directory"
                )
            except (PlaywrightError, OSError) as e:
                log.warning(
                    f"Export capture failed ({e}); scanning the scratch directory"
                )
            finally:
                page.remove_listener("response", on_response)
                page.remove_listener("download", on_download)
                for task in pending:
                    if not task.done():
                        task.cancel()

            found = await self._scan_scratch(since=started - 1.0)
            if found is not None:
                log.success(f"Found export on disk: {log.path(str(found))}")
                return found
            if timed_out:
                raise DownloadTimeout(
                    f"No export arrived within {self.browser.capture_deadline:g}s "
                    f"and none was found in {self.scratch_dir}"
                )
            raise ExportArtifactNotFound(f"No export file found in {self.scratch_dir}")

    async def _choose_json_format(self, page: Any, log: Any) -> None:
        found = await self.resolver.resolve(page, "export_format")
        if not found.ok:
            log.debug("No format choice offered; using the default export format")
            return
        if found.candidate.startswith("select"):
            await found.element.select_option("json")
        else:
            await found.element.click()
        await asyncio.sleep(self.browser.settle_delay)

    def _looks_like_export(self, response: Any) -> bool:
        url = response.url.lower()
        if not any(hint in url for hint in self.artifacts.download_url_hints):
            return False
        if not response.ok:
            return False
        content_type = response.headers.get("content-type", "").lower()
        return not any(skip in content_type for skip in _SKIPPED_CONTENT_TYPES)

    def _artifact_path(self, suffix: str, name: str = "") -> Path:
        stem = f"export-{uuid4().hex}"
        if name:
            stem = f"{stem}-{Path(name).stem}"
        self.scratch_dir.mkdir(parents=True, exist_ok=True)
        return self.scratch_dir / f"{stem}{suffix}"

    async def _buffer_response(self, response: Any, captured: asyncio.Future) -> None:
        try:
            body = await response.body()
        except PlaywrightError as e:
            self.logger.debug(f"Could not read {response.url}: {e}")
            return
        if captured.done():
            return

        content_type = response.headers.get("content-type", "").split(";")[0].strip()
        if body[:2] == b"PK":
            suffix = ".zip"
        elif body[:2] == b"\x1f\x8b":
            suffix = ".gz"
        else:
            suffix = mimetypes.guess_extension(content_type) or ".json"

        try:
            path = self._artifact_path(suffix)
            path.write_bytes(body)
        except OSError as e:
            self.logger.debug(f"Could not save {response.url}: {e}")
            if not captured.done():
                captured.set_exception(e)
            return
        self.logger.debug(f"Buffered {len(body)} bytes from {response.url} to {path}")
        if not captured.done():
            captured.set_result(path)

    async def _save_download(self, download: Any, captured: asyncio.Future) -> None:
        name = download.suggested_filename or "export.json"
        try:
            path = self._artifact_path(Path(name).suffix or ".json", name)
            await download.save_as(str(path))
        except PlaywrightError as e:
            self.logger.debug(f"Download could not be saved: {e}")
            return
        except OSError as e:
            self.logger.debug(f"Download could not be saved: {e}")
            if not captured.done():
                captured.set_exception(e)
            return
        if not captured.done():
            captured.set_result(path)

    def find_latest_artifact(self, since: Optional[float] = None) -> Optional[Path]:
        """Newest export-looking file in the scratch directory, if any."""
        if not self.scratch_dir.exists():
            return None
        candidates = []
        for path in self.scratch_dir.iterdir():
            if not path.is_file() or path.stat().st_size == 0:
                continue
            name = path.name.lower()
            if not (
                path.suffix.lower() in self.artifacts.suffixes
                or any(hint in name for hint in self.artifacts.name_hints)
            ):
                continue
            modified = path.stat().st_mtime
            if since is None or modified >= since:
                candidates.append((modified, path))
        if not candidates:
            return None
        return max(candidates)[1]

    async def _scan_scratch(self, since: float) -> Optional[Path]:
        async def probe() -> Optional[Path]:
            return self.find_latest_artifact(since=since)

        try:
            return await poll_until(
                probe,
                accept=lambda path: path is not None,
                timeout=max(self.browser.scan_grace, self.browser.poll_interval),
                interval=self.browser.poll_interval,
                logger_name="inkwell.exporter",
            )
        except PollTimeout:
            return None
