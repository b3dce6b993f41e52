# License: BSD3

"""
Selections and joins over collections of annotations.

The idea is to pick out candidates of one kind, candidates of another
kind, and look at how they relate. For example, to find underline
annotations that merely shadow a link ::

    doc = ...
    links = doc.where({'type': 'link'}).alias('links')
    underlines = doc.where({'type': 'underline'}).alias('underlines')
    for rec in links.join(underlines, is_aligned_with).records():
        print(rec['links'], rec['underlines'])

Nothing in here modifies its input: selections are immutable and joins
are fresh lists. Empty input simply gives empty output.
"""

from collections.abc import Mapping, Sequence
from itertools import product

from annodoc.util import freeze


# ---------------------------------------------------------------------
# relations
# ---------------------------------------------------------------------

def is_aligned_with(anno1, anno2):
    """
    True if the two annotations cover exactly the same span, whatever
    their type or attributes. Symmetric.
    """
    return anno1.span.is_aligned_with(anno2.span)


def encloses(anno1, anno2):
    """
    True if the span of the first annotation includes the second
    """
    return anno1.span.encloses(anno2.span)


def overlaps(anno1, anno2):
    """
    True if the two annotations have some text in common
    """
    return anno1.span.overlaps(anno2.span) is not None


# ---------------------------------------------------------------------
# predicates
# ---------------------------------------------------------------------

_FIELDS = frozenset(['type', 'start', 'end'])
_MISSING = object()


def matching(conditions):
    """
    Return a predicate on annotations from a dictionary of conditions,
    eg. ::

        {'type': 'heading', 'attributes': {'level': 2}}

    `type`, `start` and `end` are compared against the annotation
    itself; `attributes` is a dictionary of attribute values, all of
    which must be present and equal. Other attributes are ignored.
    """
    unknown = set(conditions) - _FIELDS - set(['attributes'])
    if unknown:
        raise ValueError('Cannot select on %s (only type, start, end, '
                         'attributes)' % ', '.join(sorted(unknown)))
    fields = [(k, v) for k, v in conditions.items() if k in _FIELDS]
    wanted = freeze(conditions.get('attributes', {}))

    def check(anno):
        "all conditions hold"
        if any(getattr(anno, k) != v for k, v in fields):
            return False
        return all(anno.attributes.get(k, _MISSING) == v
                   for k, v in wanted.items())
    return check


def _as_predicate(predicate):
    if isinstance(predicate, Mapping):
        return matching(predicate)
    return predicate


# ---------------------------------------------------------------------
# selections
# ---------------------------------------------------------------------

class Selection(Sequence):
    """
    An immutable sequence of annotations, optionally with a label that
    names it in subsequent joins.

    :param annotations: annotations, in whatever order they came in
    :param label: name for this selection
    :type label: string or None
    """
    def __init__(self, annotations=(), label=None):
        self._annotations = tuple(annotations)
        self.label = label

    def __len__(self):
        return len(self._annotations)

    def __getitem__(self, idx):
        return self._annotations[idx]

    def __repr__(self):
        label = '' if self.label is None else ' as %s' % self.label
        return 'Selection(%d annotations%s)' % (len(self), label)

    def where(self, predicate):
        """
        Annotations for which the predicate holds, in input order.

        :param predicate: function from annotation to bool, or a
                          dictionary of conditions (see `matching`)
        """
        pred = _as_predicate(predicate)
        return Selection(x for x in self._annotations if pred(x))

    def alias(self, label):
        """
        The same annotations, labelled for use in joins.
        (This is what would have been called `as` if Python allowed it)
        """
        return Selection(self._annotations, label)

    def join(self, other, relation):
        """
        Every pair `(a, b)` from this selection and the other for which
        `relation(a, b)` holds, in cross product order
        """
        pairs = [(x, y) for x, y in product(self._annotations, other)
                 if relation(x, y)]
        return Join(pairs, self.label, getattr(other, 'label', None))


class Join(list):
    """
    The pairs resulting from a join, along with the labels of the two
    selections they were drawn from
    """
    def __init__(self, pairs, left_label=None, right_label=None):
        super(Join, self).__init__(pairs)
        self.left_label = left_label or 'left'
        self.right_label = right_label or 'right'

    def lefts(self):
        """
        Distinct annotations from the left hand side taking part in the
        join, in order of first appearance
        """
        return _distinct(x for x, _ in self)

    def rights(self):
        """
        Distinct annotations from the right hand side taking part in the
        join, in order of first appearance
        """
        return _distinct(y for _, y in self)

    def records(self):
        """
        Each pair as a dictionary keyed on the selection labels
        """
        return [{self.left_label: x, self.right_label: y} for x, y in self]


def _distinct(annos):
    # by identity: equal annotations may still be distinct objects
    seen = set()
    res = []
    for anno in annos:
        if id(anno) not in seen:
            seen.add(id(anno))
            res.append(anno)
    return res


def select(source, label=None):
    """
    A selection of all annotations from a document, or from any
    iterable of annotations
    """
    if callable(getattr(source, 'annotations', None)):
        return Selection(source.annotations(), label)
    return Selection(source, label)


def where(source, predicate):
    """
    Shortcut for `select(source).where(predicate)`
    """
    return select(source).where(predicate)


def join(left, right, relation):
    """
    Shortcut for `left.join(right, relation)` on anything `select`
    accepts; labels are kept when given selections
    """
    if not isinstance(left, Selection):
        left = select(left)
    if not isinstance(right, Selection):
        right = select(right)
    return left.join(right, relation)
