# License: BSD3

"""
From a tree of nodes to a text buffer with standoff annotations.

The tree is walked depth first. Each non-text node gets a placeholder
character on the way in and another on the way out, with the text of its
descendants appended in between; its annotation spans both placeholders.
The annotation is only built on the way out, once the whole subtree has
been seen, so attributes that depend on the subtree (image alt text, list
tightness) are known by the time it is created, and nothing published
is ever modified afterwards.

The walk keeps its own stack rather than recursing, so deep trees are not
limited by the interpreter's recursion limit.

Attributes for a node are, in order of precedence (last wins):

* the attributes carried by its open token (`token.attrs`)
* attributes computed from the subtree (see `SUBTREE_ATTRIBUTES`)
* attributes computed from the open token (see `TOKEN_ATTRIBUTES`)
* whatever the caller-supplied handler for that node name returns
"""

# pylint: disable=too-few-public-methods

from collections import deque
from collections.abc import Mapping
import html
import warnings

from annodoc.annotation import Annotation, Document, Span
from annodoc.tree import UnbalancedTreeError


OBJECT_REPLACEMENT = '\ufffc'
"placeholder character standing for the boundary of a node"

PARSE_TOKEN = 'parse-token'
"type of the open/close marker annotations"


class AttributeComputationError(Exception):
    """
    Attributes for a node could not be computed, typically because a
    handler failed or returned something other than a mapping.
    The original exception (if any) is chained as `__cause__`.
    """
    def __init__(self, *args, **kw):
        Exception.__init__(self, *args, **kw)


class ConverterSettings:
    """
    Non-essential aspects of conversion.

    :param keep_markers: publish the `parse-token` annotations marking
                         the open and close placeholder of each node
                         (by default they are only used during the walk)
    :type keep_markers: bool

    :param placeholder: single character used for node boundaries
    :type placeholder: string
    """
    def __init__(self, keep_markers=False, placeholder=OBJECT_REPLACEMENT):
        if len(placeholder) != 1:
            raise ValueError('Placeholder must be a single character, '
                             'not %r' % placeholder)
        self.keep_markers = keep_markers
        self.placeholder = placeholder


DEFAULT_SETTINGS = ConverterSettings()


def token_attributes(token):
    """
    Flat projection of the attributes carried by a token, which may be
    a mapping or a sequence of (key, value) pairs
    """
    attrs = getattr(token, 'attrs', None)
    if not attrs:
        return {}
    elif isinstance(attrs, Mapping):
        return dict(attrs)
    else:
        return dict((k, v) for k, v in attrs)


# ---------------------------------------------------------------------
# attributes
# ---------------------------------------------------------------------

def _image_alt(node):
    return {'alt': node.gather_text()}


def _list_tightness(node):
    # tight if any item holds a paragraph whose markup is hidden
    tight = any(kid.name == 'paragraph' and
                bool(getattr(kid.open, 'hidden', False))
                for item in node.children
                for kid in item.children)
    return {'tight': tight}


def _heading_level(token):
    return {'level': int(token.tag[1])}


def _fence_info(token):
    return {'info': html.unescape((token.info or '').strip())}


SUBTREE_ATTRIBUTES = {'image': _image_alt,
                      'bullet_list': _list_tightness,
                      'ordered_list': _list_tightness}
"""
Attributes computed from a node's subtree (node -> dict), by node name
"""

TOKEN_ATTRIBUTES = {'heading': _heading_level,
                    'fence': _fence_info}
"""
Attributes computed from a node's open token (token -> dict), by node name
"""

OPAQUE = frozenset(['image'])
"""
Nodes whose children only feed into their attributes and do not
contribute any text of their own
"""


def _apply(func, name, token, what):
    """
    Call an attribute function, making sure it gives us a mapping
    """
    try:
        patch = func(token)
    except Exception as exc:
        raise AttributeComputationError(
            'Failed to compute %s attributes for %s: %s' %
            (what, name, exc)) from exc
    if not isinstance(patch, Mapping):
        raise AttributeComputationError(
            'Expected %s attributes for %s to be a mapping, got %r' %
            (what, name, patch))
    return patch


# ---------------------------------------------------------------------
# walking
# ---------------------------------------------------------------------

class _Frame:
    """
    A node we have entered but not yet left
    """
    def __init__(self, node, start=None, derived=None):
        self.node = node
        self.start = start
        self.derived = derived or {}
        kids = [] if node.name in OPAQUE and start is not None \
            else node.children
        self.pending = deque(kids)


class Converter:
    """
    Turns node trees into documents.

    :param handlers: per node name, a function from the node's open
                     token to extra attributes
    :type handlers: dict(string, callable)
    """
    def __init__(self, handlers=None, settings=None):
        self.handlers = dict(handlers or {})
        self.settings = settings or DEFAULT_SETTINGS

    def attributes(self, node, derived):
        """
        Final attributes for a node, given what was derived from its
        subtree on the way in
        """
        attributes = token_attributes(node.open)
        attributes.update(derived)
        if node.name in TOKEN_ATTRIBUTES:
            attributes.update(_apply(TOKEN_ATTRIBUTES[node.name],
                                     node.name, node.open, 'token'))
        if node.name in self.handlers:
            attributes.update(_apply(self.handlers[node.name],
                                     node.name, node.open, 'handler'))
        return attributes

    def _enter(self, doc, node):
        start = len(doc)
        doc.append(self.settings.placeholder)
        derived = {}
        if node.name in SUBTREE_ATTRIBUTES:
            derived = SUBTREE_ATTRIBUTES[node.name](node)
        return _Frame(node, start, derived)

    def _leave(self, doc, frame):
        node = frame.node
        end = doc.append(self.settings.placeholder).char_end
        annos = []
        if self.settings.keep_markers:
            annos.append(Annotation(PARSE_TOKEN, Span(frame.start,
                                                      frame.start + 1),
                                    {'type': node.name + '_open'}))
            annos.append(Annotation(PARSE_TOKEN, Span(end - 1, end),
                                    {'type': node.name + '_close'}))
        annos.append(Annotation(node.name, Span(frame.start, end),
                                self.attributes(node, frame.derived)))
        return annos

    def convert(self, root, content_type=None):
        """
        Walk the children of `root` and return the resulting document.
        The root itself does not get an annotation.

        Raises
        ------
        UnbalancedTreeError
            If a node is reached from something other than its parent
        AttributeComputationError
            If an attribute handler fails
        """
        doc = Document(content_type=content_type)
        annos = []
        seen = set()
        stack = [_Frame(root)]
        while stack:
            frame = stack[-1]
            if not frame.pending:
                stack.pop()
                if stack:
                    annos.extend(self._leave(doc, frame))
                continue
            node = frame.pending.popleft()
            if node.parent is not None and node.parent is not frame.node:
                raise UnbalancedTreeError(
                    'Reached %r from %r, but its parent is %r' %
                    (node, frame.node, node.parent))
            if node.is_text():
                doc.append(node.value or '')
            else:
                seen.add(node.name)
                stack.append(self._enter(doc, node))

        unused = set(self.handlers) - seen
        if unused:
            warnings.warn('Handlers for %s never used: no such nodes' %
                          ', '.join(sorted(unused)))
        doc.add_annotations(annos)
        return doc


def convert(root, handlers=None, settings=None,
            content_type=None):
    """
    Convert a node tree to a document; see `Converter`
    """
    return Converter(handlers, settings).convert(root,
                                                 content_type=content_type)
