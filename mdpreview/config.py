"""Load preview settings from an optional YAML file.

Example
-------
>>> from mdpreview.config import load_preview_config
>>> load_preview_config(None).pygments_style
'monokai'
"""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from ruamel.yaml import YAML


class PreviewConfigError(ValueError):
    """Raised when the preview configuration is malformed."""


@dc.dataclass(slots=True)
class PreviewConfig:
    """Settings consumed by the command line front end.

    Attributes
    ----------
    pygments_style : str
        Pygments style used for the highlighting stylesheet.
    standalone : bool
        Wrap rendered fragments in a complete HTML page.
    title_suffix : str
        Text appended to standalone page titles.
    """

    pygments_style: str = "monokai"
    standalone: bool = False
    title_suffix: str = "Preview"


def _expect(
    raw: typ.Mapping[str, typ.Any], key: str, kind: type, default: object
) -> typ.Any:  # noqa: ANN401
    """Return ``raw[key]`` when it has type ``kind``, else ``default`` if absent."""
    if key not in raw or raw[key] is None:
        return default
    value = raw[key]
    if not isinstance(value, kind):
        msg = f"'{key}' must be of type {kind.__name__}, got {type(value).__name__}."
        raise PreviewConfigError(msg)
    return value


def load_preview_config(path: Path | None) -> PreviewConfig:
    """Load preview settings from ``path``.

    Parameters
    ----------
    path : Path or None
        YAML file holding a mapping of settings. ``None`` returns defaults.

    Returns
    -------
    PreviewConfig
        Settings with defaults applied for absent keys. Unknown keys are
        ignored.

    Raises
    ------
    FileNotFoundError
        If ``path`` is given but does not exist.
    PreviewConfigError
        If the document is not a mapping or a value has the wrong type.
    """
    if path is None:
        return PreviewConfig()
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):
        msg = "Top-level YAML structure must be a mapping."
        raise PreviewConfigError(msg)

    defaults = PreviewConfig()
    return PreviewConfig(
        pygments_style=_expect(loaded, "pygments_style", str, defaults.pygments_style),
        standalone=_expect(loaded, "standalone", bool, defaults.standalone),
        title_suffix=_expect(loaded, "title_suffix", str, defaults.title_suffix),
    )


__all__ = ["PreviewConfig", "PreviewConfigError", "load_preview_config"]
