"""Cyclopts CLI for rendering Markdown files into preview HTML.

The ``mdpreview`` console script renders a file once, either as the fragment a
live preview would inject or as a standalone page, and can print the Pygments
stylesheet that styles highlighted code. Watching files and serving previews
are left to the embedding tool.

Examples
--------
Render a README fragment to stdout:

>>> from mdpreview.cli import app
>>> app(["render", "README.md"])  # doctest: +SKIP

Write a standalone page:

>>> app(["render", "README.md", "--standalone", "--output", "readme.html"])  # doctest: +SKIP
"""

from __future__ import annotations

import logging
import sys
import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .config import load_preview_config
from .engine import PreviewRenderer
from .escaping import escape_html

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"
READ_ERROR_TEMPLATE = "<p>Unable to read markdown file.</p><pre>{message}</pre>"

app = App(name="mdpreview", config=cyclopts.config.Env("MDPREVIEW_", command=False))  # type: ignore[unknown-argument]


def _format_path(path: Path) -> str:
    """Return a cwd-relative path when possible, otherwise the absolute path."""
    if path.is_absolute():
        try:
            return str(path.relative_to(Path.cwd()))
        except ValueError:  # pragma: no cover - fallback for different roots
            return str(path)
    return str(path)


def _emit(html: str, output: Path | None) -> None:
    """Write ``html`` to ``output`` or stdout."""
    if output is None:
        sys.stdout.write(html)
        if not html.endswith("\n"):
            sys.stdout.write("\n")
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(html, encoding="utf-8")
    print(f"wrote {_format_path(output)}")


def build_standalone_page(
    fragment: str, *, source_name: str, stylesheet: str, title_suffix: str
) -> str:
    """Wrap ``fragment`` in the standalone preview page template."""
    env = Environment(
        loader=FileSystemLoader(TEMPLATES_DIR),
        autoescape=select_autoescape(["html"]),
    )
    template = env.get_template("preview.html")
    return template.render(
        title=f"{source_name} — {title_suffix}",
        source_name=source_name,
        stylesheet=stylesheet,
        content=fragment,
    )


@app.command(name="render", help="Render a Markdown file to preview HTML.")
def render_file(
    path: Path,
    *,
    output: typ.Annotated[
        Path | None, Parameter(help="Write HTML here instead of stdout")
    ] = None,
    config: typ.Annotated[
        Path | None,
        Parameter(help="Path to a YAML preview config", env_var="MDPREVIEW_CONFIG"),
    ] = None,
    standalone: typ.Annotated[
        bool | None, Parameter(help="Emit a complete HTML page")
    ] = None,
    pygments_style: typ.Annotated[
        str | None, Parameter(help="Pygments style for highlighted code")
    ] = None,
    verbose: typ.Annotated[bool, Parameter(help="Log engine warnings")] = False,
) -> None:
    """Render ``path`` once and write the resulting HTML.

    Parameters
    ----------
    path : Path
        Markdown file to render (read as UTF-8).
    output : Path or None, optional
        Destination file; stdout when ``None``.
    config : Path or None, optional
        YAML config supplying defaults for the remaining options.
    standalone : bool or None, optional
        Override the config's ``standalone`` flag.
    pygments_style : str or None, optional
        Override the config's ``pygments_style``.
    verbose : bool, optional
        Configure logging so highlighting fallbacks are reported.

    Raises
    ------
    SystemExit
        With status 1 when ``path`` cannot be read; the error fragment is
        still written so a viewer has something to show.
    """
    if verbose:
        logging.basicConfig(
            level=logging.INFO, format="[md] %(levelname)s %(name)s: %(message)s"
        )
    settings = load_preview_config(config)
    style = pygments_style or settings.pygments_style
    renderer = PreviewRenderer(style)

    try:
        markdown_text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _emit(READ_ERROR_TEMPLATE.format(message=escape_html(str(exc))), output)
        print(f"[md] Failed to read file: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    html = renderer.render(markdown_text)
    if settings.standalone if standalone is None else standalone:
        html = build_standalone_page(
            html,
            source_name=path.name,
            stylesheet=renderer.stylesheet,
            title_suffix=settings.title_suffix,
        )
    _emit(html, output)


@app.command(help="Print the CSS used for highlighted code blocks.")
def stylesheet(
    *,
    pygments_style: typ.Annotated[
        str, Parameter(help="Pygments style name")
    ] = "monokai",
) -> None:
    """Print the highlighting stylesheet for ``pygments_style``."""
    print(PreviewRenderer(pygments_style).stylesheet)


def main() -> None:
    """Invoke the Cyclopts application behind the ``mdpreview`` command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
