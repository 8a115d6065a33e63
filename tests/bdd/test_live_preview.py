"""Behaviour tests for rendering Markdown into live preview fragments.

The scenarios in ``live_preview.feature`` render small documents through
:func:`mdpreview.render` and inspect the resulting markup with BeautifulSoup,
covering callouts, code blocks, diagram placeholders, and raw HTML filtering.

Usage
-----
Run ``pytest tests/bdd/test_live_preview.py -v``. The steps share data
through the ``scenario_state`` fixture and need no files or network access.
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import pytest
from bs4 import BeautifulSoup
from pytest_bdd import given, parsers, scenarios, then, when

from mdpreview import render

FEATURE_FILE = (
    Path(__file__).resolve().parents[2] / "features" / "live_preview.feature"
)
scenarios(FEATURE_FILE)


@pytest.fixture
def scenario_state() -> dict[str, object]:
    """Return a mutable dict used to share scenario state across BDD steps."""
    return {}


def _soup(scenario_state: dict[str, object]) -> BeautifulSoup:
    """Parse the HTML rendered by the ``when`` step."""
    return BeautifulSoup(typ.cast("str", scenario_state["html"]), "html.parser")


@given("a markdown document with a tip callout containing a rust fence")
def given_callout_with_fence(scenario_state: dict[str, object]) -> None:
    """Store a callout whose body holds a fenced Rust sample."""
    scenario_state["markdown"] = (
        "> [!TIP]\n"
        "> Run this first:\n"
        ">\n"
        "> ```rust,no_run\n"
        '> fn main() { println!("hi"); }\n'
        "> ```\n"
    )


@given("a markdown document with a mermaid fence")
def given_mermaid(scenario_state: dict[str, object]) -> None:
    """Store a document with one Mermaid diagram."""
    scenario_state["markdown"] = "# Flow\n\n```mermaid\ngraph TD; A-->B;\n```\n"


@given("a markdown document with a diff fence")
def given_diff(scenario_state: dict[str, object]) -> None:
    """Store a document with a small unified diff."""
    scenario_state["markdown"] = "```diff\n@@ -1 +1 @@\n-old\n+new\n```\n"


@given("a markdown document with an inline script tag")
def given_script(scenario_state: dict[str, object]) -> None:
    """Store a document that tries to inject a script."""
    scenario_state["markdown"] = "Hello\n\n<script>alert('x')</script>\n"


@when("I render the document")
def when_render(scenario_state: dict[str, object]) -> None:
    """Render the stored Markdown."""
    scenario_state["html"] = render(typ.cast("str", scenario_state["markdown"]))


@then(parsers.parse('the HTML contains a tip callout titled "{title}"'))
def then_tip_callout(scenario_state: dict[str, object], title: str) -> None:
    """Verify the callout wrapper and its title."""
    callout = _soup(scenario_state).select_one("div.callout.callout-tip")
    assert callout is not None, "expected a tip callout"
    heading = callout.select_one("p.callout-title")
    assert heading is not None
    assert heading.get_text(strip=True).endswith(title)


@then(
    parsers.parse(
        'the callout contains code block "{block_id}" labelled "{language}"'
    )
)
def then_callout_code(
    scenario_state: dict[str, object], block_id: str, language: str
) -> None:
    """Verify the nested fence rendered as a highlighted code block."""
    callout = _soup(scenario_state).select_one("div.callout-tip div.callout-content")
    assert callout is not None
    block = callout.select_one("div.code-block")
    assert block is not None, "expected a code block inside the callout"
    assert block.get("data-language") == language
    code = block.select_one("code")
    assert code is not None
    assert code["id"] == block_id
    assert "fn main" in code.get_text()
    assert block.select_one("button.code-copy")["data-code-target"] == block_id


@then(parsers.parse('the HTML contains a pending mermaid diagram "{target_id}"'))
def then_mermaid(scenario_state: dict[str, object], target_id: str) -> None:
    """Verify the diagram placeholder and its render target."""
    figure = _soup(scenario_state).select_one("figure.diagram-mermaid")
    assert figure is not None
    assert figure["data-diagram-state"] == "pending"
    assert figure.select_one("div.diagram-target")["id"] == target_id


@then("no code block is rendered")
def then_no_code_block(scenario_state: dict[str, object]) -> None:
    """Diagram fences must not also produce code blocks."""
    assert _soup(scenario_state).select("div.code-block") == []


@then("the diff block marks one addition and one deletion")
def then_diff_lines(scenario_state: dict[str, object]) -> None:
    """Verify diff line classification."""
    soup = _soup(scenario_state)
    assert soup.select_one("div.code-block.code-block-diff") is not None
    assert len(soup.select("span.code-line-addition")) == 1
    assert len(soup.select("span.code-line-deletion")) == 1
    assert len(soup.select("span.code-line-hunk")) == 1


@then("the HTML contains no live script element")
def then_no_script(scenario_state: dict[str, object]) -> None:
    """The script tag is shown as text rather than executed."""
    html = typ.cast("str", scenario_state["html"])
    assert _soup(scenario_state).find("script") is None
    assert "&lt;script" in html
