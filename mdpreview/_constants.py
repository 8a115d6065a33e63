"""Markup fragments shared by the code block and diagram renderers.

Both renderers emit the same clipboard icon so the hydration script can swap
it for a success glyph without caring which kind of block it sits in.

Examples
--------
>>> from mdpreview import _constants
>>> _constants.COPY_ICON_SVG.startswith("    <svg")
True
"""

COPY_ICON_SVG = (
    '    <svg aria-hidden="true" viewBox="0 0 16 16">\n'
    '      <path d="M0 6.75C0 5.784.784 5 1.75 5h1.5a.75.75 0 0 1 0 1.5h-1.5a.25.25 0 0 0'
    "-.25.25v7.5c0 .138.112.25.25.25h7.5a.25.25 0 0 0 .25-.25v-1.5a.75.75 0 0 1 1.5 0"
    'v1.5A1.75 1.75 0 0 1 9.25 16h-7.5A1.75 1.75 0 0 1 0 14.25Z"></path>\n'
    '      <path d="M5 1.75C5 .784 5.784 0 6.75 0h7.5C15.216 0 16 .784 16 1.75v7.5A1.75 '
    "1.75 0 0 1 14.25 11h-7.5A1.75 1.75 0 0 1 5 9.25Zm1.75-.25a.25.25 0 0 0-.25.25v7.5"
    "c0 .138.112.25.25.25h7.5a.25.25 0 0 0 .25-.25v-7.5a.25.25 0 0 0-.25-.25Z"
    '"></path>\n'
    "    </svg>"
)

CODE_BLOCK_ID_TEMPLATE = "code-block-{index}"
DIAGRAM_ID_TEMPLATE = "diagram-{kind}-{index}"
