# License: BSD3

"""
CommonMark documents in `annodoc` form

The tokens come from markdown-it-py in its strict CommonMark preset.
Annotation types are named after the markdown-it tokens (`heading`,
`em`, `bullet_list`...); `to_canonical` maps them onto a smaller, format
independent vocabulary (`italic`, `list` with a `type` attribute...).

You're likely most interested in `parse`
"""

from markdown_it import MarkdownIt

from annodoc.annotation import Annotation
from annodoc.pipeline import Pipeline


CONTENT_TYPE = 'text/commonmark'


def tokenize(markdown):
    """
    Flat markdown-it token stream for a CommonMark string
    """
    return MarkdownIt('commonmark').parse(markdown)


# ---------------------------------------------------------------------
# canonical vocabulary
# ---------------------------------------------------------------------

CANONICAL_TYPES = {
    'blockquote': ('blockquote', {}),
    'bullet_list': ('list', {'type': 'bulleted'}),
    'code_block': ('code-block', {}),
    'code_inline': ('code', {}),
    'em': ('italic', {}),
    'fence': ('code-block', {}),
    'hardbreak': ('line-break', {}),
    'heading': ('heading', {}),
    'hr': ('horizontal-rule', {}),
    'html_block': ('html', {'type': 'block'}),
    'html_inline': ('html', {'type': 'inline'}),
    'image': ('image', {}),
    'link': ('link', {}),
    'list_item': ('list-item', {}),
    'ordered_list': ('list', {'type': 'numbered'}),
    'paragraph': ('paragraph', {}),
    'strong': ('bold', {}),
}
"""
markdown-it annotation type to (canonical type, extra attributes)
"""

CANONICAL_ATTRIBUTES = {
    'href': 'url',
    'src': 'url',
    'start': 'startsAt',
}
"""
Renamed attributes (all others are kept as they are)
"""


def to_canonical(anno):
    """
    Vocabulary remap from markdown-it annotation types to canonical ones.
    Types we do not know about (including the `parse-token` markers)
    are dropped.
    """
    if anno.type not in CANONICAL_TYPES:
        return []
    ctype, extra = CANONICAL_TYPES[anno.type]
    attributes = dict((CANONICAL_ATTRIBUTES.get(k, k), v)
                      for k, v in anno.attributes.items())
    attributes.update(extra)
    return [Annotation(ctype, anno.span, attributes)]


# ---------------------------------------------------------------------
# entry points
# ---------------------------------------------------------------------

def commonmark_pipeline(handlers=None, remap=None, cleanups=(),
                        settings=None):
    """
    A `Pipeline` from CommonMark strings to documents
    """
    return Pipeline(tokenize, handlers=handlers, remap=remap,
                    cleanups=cleanups, settings=settings,
                    content_type=CONTENT_TYPE)


def parse(markdown, handlers=None, settings=None):
    """
    Read a CommonMark string into a document, with annotation types
    named after the markdown-it tokens.
    """
    return commonmark_pipeline(handlers=handlers,
                               settings=settings).run(markdown)
