"""
Selector resolution for the journaling web app.

The web app's markup is not a stable contract, so every element the exporter
touches is described by a preference-ordered list of locator strings rather
than a single selector. The lists are plain data: ``DEFAULT_SELECTORS`` holds
the built-in candidates and ``inkwell.yml`` can replace the list for any step
without touching the exporter.

Resolution tries each candidate in order, polling briefly for it to become
visible, and returns a ``Resolution`` describing the first one that matched
(or every candidate that was tried). Nothing is clicked or typed here.

Example:
    ```python
    resolver = SelectorResolver(SelectorTable({"export": ["#export-now"]}))
    found = await resolver.resolve(page, "export")
    if found.ok:
        await found.element.click()
    ```
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from playwright.async_api import Error as PlaywrightError

from inkwell.messages import get_logger
from inkwell.utility.exceptions import StepLocatorExhausted
from inkwell.utility.retry import PollTimeout, poll_until
from inkwell.utility.settings import settings

# Candidates may contain a {journal} placeholder filled in at resolution time.
DEFAULT_SELECTORS: Dict[str, List[str]] = {
    "email": [
        'input[type="email"]',
        'input[name="email"]',
        "#email",
    ],
    "password": [
        'input[type="password"]',
        'input[name="password"]',
        "#password",
    ],
    "login_submit": [
        'button[type="submit"]',
        'button:has-text("Sign In")',
        'button:has-text("Log In")',
    ],
    "sidebar_toggle": [
        'button[aria-label*="sidebar"]',
        'button[aria-label*="Sidebar"]',
        '[data-testid*="sidebar-toggle"]',
    ],
    "journal": [
        'text="{journal}"',
        '[data-testid*="journal"]:has-text("{journal}")',
        'a:has-text("{journal}")',
    ],
    "export": [
        'a[href*="export"]',
        'button[aria-label*="export"]',
        'button[aria-label*="Export"]',
        ".export-button",
        '[data-testid*="export"]',
    ],
    "menu": [
        'button[aria-label*="menu"]',
        'button[aria-label*="Menu"]',
        ".menu-button",
        '[data-testid*="menu"]',
    ],
    "export_format": [
        'input[value="json"]',
        'button[data-format="json"]',
        'select:has(option[value="json"])',
    ],
    "export_submit": [
        'button:has-text("Export")',
        'input[value*="Export"]',
        'button[type="submit"]',
        ".export-submit",
    ],
}


def _quote(value: str) -> str:
    """Escape a placeholder value for use inside a quoted selector string."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


@dataclass(frozen=True)
class Resolution:
    """Outcome of resolving one step: the matched element, or nothing."""

    action: str
    element: Optional[Any] = None
    candidate: Optional[str] = None
    attempted: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.element is not None

    def unwrap(self) -> Any:
        """Return the element or raise StepLocatorExhausted."""
        if not self.ok:
            raise StepLocatorExhausted(self.action, self.attempted)
        return self.element


class SelectorTable:
    """Built-in candidate lists merged with per-workspace overrides."""

    def __init__(self, overrides: Optional[Mapping[str, Sequence[str]]] = None):
        self.table: Dict[str, List[str]] = {
            action: list(candidates) for action, candidates in DEFAULT_SELECTORS.items()
        }
        for action, candidates in (overrides or {}).items():
            self.table[action] = list(candidates)

    def candidates(self, action: str, **params: str) -> List[str]:
        """
        Candidate locators for an action, with placeholders filled in.

        Raises:
            KeyError: If the action has no candidate list
        """
        if action not in self.table:
            raise KeyError(f"No selectors defined for step '{action}'")
        resolved = []
        for candidate in self.table[action]:
            for key, value in params.items():
                candidate = candidate.replace("{" + key + "}", _quote(value))
            resolved.append(candidate)
        return resolved

    def actions(self) -> List[str]:
        return list(self.table)


class SelectorResolver:
    """Finds the first visible element among an action's candidates."""

    def __init__(
        self,
        table: Optional[SelectorTable] = None,
        per_candidate_timeout: float = settings.timeouts.per_candidate,
        poll_interval: float = settings.timeouts.poll_interval,
    ):
        self.table = table or SelectorTable()
        self.per_candidate_timeout = per_candidate_timeout
        self.poll_interval = poll_interval
        self.logger = get_logger("inkwell.selectors")

    async def resolve(self, page: Any, action: str, **params: str) -> Resolution:
        """
        Try each candidate for ``action`` in order.

        Args:
            page: Playwright page (or anything with a compatible ``locator``)
            action: Step name, a key of the selector table
            **params: Placeholder values, e.g. ``journal="Blog Draft"``

        Returns:
            Resolution with ``ok`` True for the first visible candidate,
            otherwise ``ok`` False and every candidate listed in ``attempted``
        """
        attempted: List[str] = []
        for candidate in self.table.candidates(action, **params):
            attempted.append(candidate)
            element = page.locator(candidate).first
            try:
                await poll_until(
                    element.is_visible,
                    timeout=self.per_candidate_timeout,
                    interval=self.poll_interval,
                    exceptions=PlaywrightError,
                    logger_name="inkwell.selectors",
                )
            except PollTimeout:
                self.logger.debug(f"{action}: no match for {candidate}")
                continue
            self.logger.debug(f"{action}: matched {candidate}")
            return Resolution(action, element, candidate, tuple(attempted))

        return Resolution(action, attempted=tuple(attempted))

    async def require(self, page: Any, action: str, **params: str) -> Any:
        """Resolve ``action`` and return its element, or raise StepLocatorExhausted."""
        resolution = await self.resolve(page, action, **params)
        return resolution.unwrap()
