"""
Low-level representation of documents as a single text buffer plus a
standoff collection of annotations.

This is low-level in the sense that we make little attempt to interpret the
information stored in these annotations. A heading annotation may claim to
have a `level` attribute of 2; we simply note the fact. Per-type attribute
schemas are the business of whoever produced or consumes the document.

Offsets count code points of the Python string holding the content, and
spans are half-open, the same way Python interprets slice indices.
"""

# License: BSD3

# pylint: disable=too-few-public-methods

from annodoc.query import select
from annodoc.util import freeze, thaw


class InvalidRangeError(Exception):
    """
    An annotation or edit points outside of the text buffer
    (or has its start after its end)
    """
    def __init__(self, *args, **kw):
        Exception.__init__(self, *args, **kw)


class Span:
    """
    A half-open interval `[char_start, char_end)` of the text buffer.

    Offsets sit in between characters ::

          h   o   w   d   y
        0   1   2   3   4   5

    so `Span(0, 5)` covers the whole word above, `Span(1, 2)` the
    letter "o", and `Span(2, 2)` nothing at all.
    """
    def __init__(self, start, end):
        self.char_start = start
        self.char_end = end

    def __str__(self):
        return '(%d,%d)' % (self.char_start, self.char_end)

    def __repr__(self):
        return 'Span(%d, %d)' % (self.char_start, self.char_end)

    def _key(self):
        return (self.char_start, self.char_end)

    def __eq__(self, other):
        if not isinstance(other, Span):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other):
        return self._key() < other._key()

    def __gt__(self, other):
        return other < self

    def __le__(self, other):
        return not other < self

    def __ge__(self, other):
        return not self < other

    def __hash__(self):
        return hash(self._key())

    def shift(self, offset):
        """
        Copy of this span moved `offset` characters to the right
        (left if negative)
        """
        return Span(self.char_start + offset, self.char_end + offset)

    def encloses(self, other):
        """
        True if `other` lies within this span; every span encloses
        itself, and nothing encloses `None`
        """
        if other is None:
            return False
        return self.char_start <= other.char_start and\
            other.char_end <= self.char_end

    def is_aligned_with(self, other):
        """
        True if both spans have the same boundaries. Unlike `encloses`,
        this is symmetric.
        """
        if other is None:
            return False
        return self._key() == other._key()

    def overlaps(self, other):
        """
        The region two spans have in common, or None if they share no
        character ::

            Span(5, 10).overlaps(Span(8, 12)) == Span(8, 10)
            Span(5, 10).overlaps(Span(10, 12)) is None

        An empty span lying within the other one overlaps it.
        """
        if other is None:
            return None
        elif self.encloses(other):
            return other
        elif other.encloses(self):
            return self
        start = max(self.char_start, other.char_start)
        end = min(self.char_end, other.char_end)
        if start < end:
            return Span(start, end)
        return None


class Annotation:
    """A typed, attributed span of text.

    Annotations have:
    * span:       where in the text buffer they sit
    * type:       some key label (we call a type)
    * attributes: an immutable attribute to value mapping

    Annotations are values: they compare equal when their type,
    attributes and span are equal, and are hashable so that collections
    of them can be compared as multisets. Nothing here mutates an
    annotation; the `with_*` methods return fresh copies instead.
    """
    __slots__ = ('_type', '_span', '_attributes')

    def __init__(self, atype, span, attributes=None):
        """Init method.

        Parameters
        ----------
        atype : str
            Annotation type, eg. "heading" or "parse-token"
        span : Span
            Coordinates of the annotated span.
        attributes : mapping from str to value, optional
            Nested mappings are frozen as well.
        """
        self._type = atype
        self._span = span
        self._attributes = freeze(attributes or {})

    @property
    def type(self):
        "annotation type"
        return self._type

    @property
    def span(self):
        "annotated span"
        return self._span

    @property
    def attributes(self):
        "frozen attribute mapping"
        return self._attributes

    @property
    def start(self):
        "first offset covered"
        return self._span.char_start

    @property
    def end(self):
        "offset just after the last one covered"
        return self._span.char_end

    def _key(self):
        return (self._type, self._attributes, self._span)

    def __eq__(self, other):
        if not isinstance(other, Annotation):
            return NotImplemented
        return self._key() == other._key()

    def __hash__(self):
        return hash(self._key())

    def __lt__(self, other):
        return (self._span, self._type) < (other._span, other._type)

    def __str__(self):
        return '[%s] %s %s' % (self._type, self._span,
                               dict(self._attributes))

    def __repr__(self):
        return 'Annotation(%r, %r, %r)' % (self._type, self._span,
                                           dict(self._attributes))

    def with_span(self, span):
        "copy of this annotation over another span"
        return Annotation(self._type, span, self._attributes)

    def with_type(self, atype):
        "copy of this annotation with another type"
        return Annotation(atype, self._span, self._attributes)

    def with_attributes(self, patch):
        """
        Copy of this annotation where `patch` has been merged into
        the attributes (patch values win)
        """
        merged = dict(self._attributes)
        merged.update(patch)
        return Annotation(self._type, self._span, merged)

    def shift(self, offset):
        "copy of this annotation, moved by `offset`"
        return self.with_span(self._span.shift(offset))

    def encloses(self, other):
        """
        True if this annotation's span encloses the span of the other.
        """
        return self._span.encloses(other.span)

    def overlaps(self, other):
        """
        True if this annotation's span overlaps with the span of the other.
        """
        return self._span.overlaps(other.span) is not None

    def is_aligned_with(self, other):
        """
        True if both annotations cover exactly the same interval,
        irrespective of their type or attributes
        """
        return self._span.is_aligned_with(other.span)

    def to_dict(self):
        """
        Canonical `{type, attributes, start, end}` representation,
        with plain (mutable) dictionaries
        """
        return {'type': self._type,
                'attributes': thaw(self._attributes),
                'start': self.start,
                'end': self.end}

    @classmethod
    def from_dict(cls, record):
        "inverse of `to_dict`"
        return cls(record['type'],
                   Span(record['start'], record['end']),
                   record.get('attributes'))


def _move_deleted(offset, start, end):
    """
    Where an offset ends up once the text in `[start, end)` is cut
    """
    if offset <= start:
        return offset
    elif offset <= end:
        return start
    else:
        return offset - (end - start)


class Document:
    """
    A text buffer and the annotations over it.

    The buffer and annotations are only ever edited together: appending
    text leaves existing annotations where they are, while `insert_text`
    and `delete_text` re-span every annotation so that it stays within
    the buffer. The collection is unordered; callers should not rely on
    the order `annotations` returns things in.

    Appended text is kept as a list of pieces, joined only when the
    content is read.
    """
    def __init__(self, content='', annotations=None, content_type=None):
        self._chunks = [content]
        self._size = len(content)
        self._annotations = []
        self.content_type = content_type
        if annotations:
            self.add_annotations(annotations)

    def __len__(self):
        return self._size

    def __repr__(self):
        return 'Document(%d chars, %d annotations)' %\
            (self._size, len(self._annotations))

    @property
    def content(self):
        "the whole text buffer"
        if len(self._chunks) > 1:
            self._chunks = [''.join(self._chunks)]
        return self._chunks[0]

    def text(self, span=None):
        """
        Return the text of this document, optionally limited to a span
        """
        if span is None:
            return self.content
        else:
            return self.content[span.char_start:span.char_end]

    def annotations(self):
        """
        All annotations associated with this document (a fresh list)
        """
        return list(self._annotations)

    def append(self, text):
        """
        Add text to the end of the buffer

        Returns
        -------
        span : Span
            Where the new text sits in the buffer
        """
        start = self._size
        self._chunks.append(text)
        self._size += len(text)
        return Span(start, self._size)

    def check_span(self, span):
        """
        Raise `InvalidRangeError` unless the span fits inside the buffer
        """
        if span.char_start > span.char_end:
            raise InvalidRangeError('Span %s starts after it ends' % span)
        if span.char_start < 0 or span.char_end > self._size:
            raise InvalidRangeError('Span %s does not fit in a buffer of '
                                    'length %d' % (span, self._size))

    def add_annotation(self, anno):
        """
        Add an annotation; its span must fit within the current buffer
        (it is never clamped)
        """
        self.check_span(anno.span)
        self._annotations.append(anno)

    def add_annotations(self, annos):
        """
        Add several annotations; if any is invalid, none are added
        """
        annos = list(annos)
        for anno in annos:
            self.check_span(anno.span)
        self._annotations.extend(annos)

    def remove_annotations(self, annos):
        """
        Drop the given annotation objects from this document.

        Removal goes by identity, so that of two equal annotations
        (same type, attributes and span) only the one passed in goes.
        """
        doomed = set(id(x) for x in annos)
        self._annotations = [x for x in self._annotations
                             if id(x) not in doomed]

    def insert_text(self, position, text):
        """
        Insert text before the given offset, moving annotations along.

        Annotations starting at or after the insertion point move right;
        annotations that straddle it grow to include the new text.
        An annotation ending exactly at the insertion point is left
        alone.
        """
        if position < 0 or position > self._size:
            raise InvalidRangeError('Cannot insert at %d in a buffer of '
                                    'length %d' %
                                    (position, self._size))
        size = len(text)
        content = self.content
        self._chunks = [content[:position] + text + content[position:]]
        self._size += size

        def adjust(anno):
            "move or stretch"
            if anno.start >= position:
                return anno.shift(size)
            elif anno.end > position:
                return anno.with_span(Span(anno.start, anno.end + size))
            else:
                return anno

        self._annotations = [adjust(x) for x in self._annotations]

    def delete_text(self, start, end):
        """
        Cut the text in `[start, end)`, moving annotations along.

        Annotations wholly inside the cut collapse to an empty span at
        `start`; they are kept rather than dropped.
        """
        self.check_span(Span(start, end))
        content = self.content
        self._chunks = [content[:start] + content[end:]]
        self._size -= end - start

        def adjust(anno):
            "move or shrink"
            return anno.with_span(
                Span(_move_deleted(anno.start, start, end),
                     _move_deleted(anno.end, start, end)))

        self._annotations = [adjust(x) for x in self._annotations]

    def where(self, predicate):
        """
        Shortcut for `annodoc.query.select(doc).where(predicate)`
        """
        return select(self).where(predicate)

    def to_dict(self):
        """
        Canonical `{content, annotations}` representation, with plain
        dictionaries throughout
        """
        record = {'content': self.content,
                  'annotations': [x.to_dict() for x in self._annotations]}
        if self.content_type is not None:
            record['contentType'] = self.content_type
        return record

    @classmethod
    def from_dict(cls, record):
        "inverse of `to_dict`"
        return cls(record['content'],
                   [Annotation.from_dict(x) for x in record['annotations']],
                   content_type=record.get('contentType'))


__all__ = ['Annotation', 'Document', 'InvalidRangeError', 'Span']
