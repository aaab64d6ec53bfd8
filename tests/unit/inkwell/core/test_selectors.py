"""
Tests for selector tables and resolution.
"""
import pytest

from inkwell.core.selectors import DEFAULT_SELECTORS, SelectorResolver, SelectorTable
from inkwell.utility.exceptions import StepLocatorExhausted


class TestSelectorTable:
    """Test defaults, overrides and placeholders."""

    def test_defaults(self):
        table = SelectorTable()
        assert table.candidates("export") == DEFAULT_SELECTORS["export"]

    def test_override_replaces_list(self):
        table = SelectorTable({"export": ["#export-now"]})
        assert table.candidates("export") == ["#export-now"]
        assert table.candidates("menu") == DEFAULT_SELECTORS["menu"]

    def test_override_does_not_mutate_defaults(self):
        table = SelectorTable()
        table.table["export"].append("#extra")
        assert "#extra" not in DEFAULT_SELECTORS["export"]

    def test_journal_placeholder(self):
        table = SelectorTable({"journal": ['text="{journal}"']})
        assert table.candidates("journal", journal="Blog Public") == [
            'text="Blog Public"'
        ]

    def test_journal_placeholder_escapes_quotes(self):
        table = SelectorTable()
        assert table.candidates("journal", journal='The "Good" Days')[0] == (
            'text="The \\"Good\\" Days"'
        )

    def test_unknown_action(self):
        with pytest.raises(KeyError):
            SelectorTable().candidates("teleport")


def _resolver(overrides=None):
    return SelectorResolver(
        SelectorTable(overrides), per_candidate_timeout=0.05, poll_interval=0.01
    )


class TestSelectorResolver:
    """Test candidates are tried in order until one is visible."""

    @pytest.mark.asyncio
    @pytest.mark.timeout(5)
    async def test_first_candidate(self, fake_page):
        page = fake_page(visible={"#a"})
        found = await _resolver({"export": ["#a", "#b"]}).resolve(page, "export")

        assert found.ok
        assert found.candidate == "#a"
        assert found.attempted == ("#a",)

    @pytest.mark.asyncio
    @pytest.mark.timeout(5)
    async def test_falls_back_to_later_candidate(self, fake_page):
        page = fake_page(visible={"#c"})
        found = await _resolver({"export": ["#a", "#b", "#c"]}).resolve(page, "export")

        assert found.ok
        assert found.candidate == "#c"
        assert found.attempted == ("#a", "#b", "#c")
        assert found.element.selector == "#c"

    @pytest.mark.asyncio
    @pytest.mark.timeout(5)
    async def test_nothing_matches(self, fake_page):
        page = fake_page()
        found = await _resolver({"export": ["#a", "#b"]}).resolve(page, "export")

        assert not found.ok
        assert found.attempted == ("#a", "#b")
        with pytest.raises(StepLocatorExhausted) as exc:
            found.unwrap()
        assert exc.value.action == "export"
        assert exc.value.candidates == ["#a", "#b"]

    @pytest.mark.asyncio
    @pytest.mark.timeout(5)
    async def test_require_fills_placeholder(self, fake_page):
        page = fake_page(visible={'a:has-text("Blog Public")'})
        element = await _resolver({"journal": ['a:has-text("{journal}")']}).require(
            page, "journal", journal="Blog Public"
        )
        assert element.selector == 'a:has-text("Blog Public")'
