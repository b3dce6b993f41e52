# License: BSD3

"""
Hierarchical input to the span converter.

Format-specific producers (a CommonMark tokenizer, a word processor
importer...) hand us a tree of `Node`. Each non-text node remembers the
open and close tokens it was built from; these are opaque to us except
when it comes to extracting attributes. Text nodes carry a literal
string instead of children.

Producers that emit a flat stream of open/close tokens in the
markdown-it style can use `build_tree` to get such a tree; producers
that emit NLTK trees can use `Node.from_nltk`.
"""

# pylint: disable=redefined-builtin, too-many-arguments

import nltk.tree


TEXT = 'text'
"name of the nodes holding literal text"


class UnbalancedTreeError(Exception):
    """
    A close event without a matching open (or the other way around).
    Token producers are expected to balance their output, so this
    means something is wrong upstream.
    """
    def __init__(self, *args, **kw):
        Exception.__init__(self, *args, **kw)


class Node:
    """
    An element of the converter input tree.

    Children are owned by their node; `parent` is a back-reference used
    to go back up a level while building the tree.

    :param name: annotation type the node becomes, or "text"
    :param open: token the node was opened by (format specific)
    :param close: token the node was closed by (format specific)
    :param value: literal string for text nodes
    :param children: nodes in document order
    """
    def __init__(self, name, open=None, close=None, value=None,
                 children=None, parent=None):
        self.name = name
        self.open = open
        self.close = close
        self.value = value
        self.parent = parent
        self.children = []
        for child in children or []:
            self.add_child(child)

    @classmethod
    def text(cls, value, parent=None):
        "a literal text node"
        return cls(TEXT, value=value, parent=parent)

    def __repr__(self):
        if self.is_text():
            return 'Node(text, %r)' % self.value
        return 'Node(%s, %d children)' % (self.name, len(self.children))

    def is_text(self):
        "True if this node holds literal text"
        return self.name == TEXT

    def add_child(self, node):
        """
        Append a child, taking ownership of it
        """
        node.parent = self
        self.children.append(node)
        return node

    def iter_text(self):
        """
        Literal text of all text nodes in this subtree, in document
        order
        """
        stack = [self]
        while stack:
            node = stack.pop()
            if node.is_text():
                yield node.value or ''
            else:
                stack.extend(reversed(node.children))

    def gather_text(self):
        """
        Concatenation of all the literal text in this subtree
        """
        return ''.join(self.iter_text())

    @classmethod
    def from_nltk(cls, tree):
        """
        Build a node tree out of an NLTK tree.

        Tree labels become node names (and so annotation types); leaves
        become text nodes. The NLTK subtree a node comes from is kept as
        its open and close token.
        """
        if not isinstance(tree, nltk.tree.Tree):
            return cls.text(str(tree))
        return cls(tree.label(), open=tree, close=tree,
                   children=[cls.from_nltk(kid) for kid in tree])


def _get(token, attr, default=None):
    return getattr(token, attr, default)


def _pad_code(text):
    """
    Pad inline code that starts or ends with a backtick, so that
    rendering it again does not produce two code spans instead of one
    """
    if text.startswith('`'):
        text = ' ' + text
    if text.endswith('`'):
        text += ' '
    return text


def _add_tokens(tokens, top):
    """
    Attach a flat token stream under `top`, following the nesting
    markers of the tokens. The stream must leave us back at `top`.
    """
    current = top
    after_softbreak = False
    for token in tokens:
        ttype = _get(token, 'type')
        nesting = _get(token, 'nesting', 0)
        if ttype == 'softbreak':
            if not after_softbreak:
                current.add_child(Node.text('\n'))
            after_softbreak = True
            continue
        after_softbreak = False

        if ttype == 'text':
            current.add_child(Node.text(_get(token, 'content', '')))
        elif ttype == 'inline':
            # wrapper: no node of its own
            _add_tokens(_get(token, 'children') or [], current)
        elif _get(token, 'children'):
            node = current.add_child(Node(ttype, open=token))
            _add_tokens(token.children, node)
        elif nesting == 1:
            name = ttype[:-len('_open')] if ttype.endswith('_open') \
                else ttype
            current = current.add_child(Node(name, open=token, close=token))
        elif nesting == -1:
            if current is top:
                raise UnbalancedTreeError(
                    'Token %s closes a node that was never opened' % ttype)
            current.close = token
            current = current.parent
        else:
            text = _get(token, 'content', '') or ''
            if ttype == 'code_inline':
                text = _pad_code(text)
            current.add_child(Node(ttype, open=token, close=token,
                                   children=[Node.text(text)]))
    if current is not top:
        raise UnbalancedTreeError(
            'Node %s was opened but never closed' % current.name)


def build_tree(tokens, root=None):
    """
    Build a node tree out of a flat stream of markdown-it style tokens.

    Tokens need `type`, `nesting`, `content` and `children` fields (and
    whatever the attribute computation needs, eg. `attrs`, `tag`,
    `hidden`, `info`). The returned root has no token of its own.

    Raises
    ------
    UnbalancedTreeError
        If a token closes a node that was not opened, or a node is left
        open at the end of the stream
    """
    root = root or Node('root')
    _add_tokens(tokens, root)
    return root

