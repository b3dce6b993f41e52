# License: BSD3

"""
Putting it together: from a format-specific payload to a cleaned up
document in the canonical vocabulary.

1. a producer turns the payload into a node tree (or a token stream,
   which we pass through `annodoc.tree.build_tree`)
2. the converter turns the tree into a document
3. an optional vocabulary remap translates source specific annotation
   types into canonical ones, one annotation at a time
4. cleanup passes fix known artifacts of the source format in place,
   for example formatting that only shadows a link (`drop_aligned`)
"""

import warnings

from annodoc.annotation import Document
from annodoc.converter import DEFAULT_SETTINGS, PARSE_TOKEN, convert
from annodoc.query import is_aligned_with
from annodoc.tree import Node, build_tree
from annodoc.util import concat


# ---------------------------------------------------------------------
# vocabulary remaps
# ---------------------------------------------------------------------

def identity_remap(anno):
    "every annotation maps to itself"
    return [anno]


def remap_document(doc, remap):
    """
    Return a new document with the same content, where each annotation
    has been replaced by whatever `remap` returns for it (zero or more
    annotations). Each annotation is remapped on its own.
    """
    annos = concat(remap(x) for x in doc.annotations())
    return Document(doc.content, annos, content_type=doc.content_type)


def compose_remaps(*remaps):
    """
    A remap doing each of the given remaps in turn, feeding the output
    of one into the next
    """
    def remap(anno):
        "chained remap"
        annos = [anno]
        for step in remaps:
            annos = list(concat(step(x) for x in annos))
        return annos
    return remap


def rename_types(mapping, strict=False):
    """
    A remap from a table of source type to target type.

    Mapping a type to None drops annotations of that type. Types missing
    from the table are kept as they are (with a warning, once per type),
    or if `strict`, cause a `KeyError`.
    """
    unknown = set()

    def remap(anno):
        "table lookup"
        if anno.type not in mapping:
            if strict:
                raise KeyError('No mapping for annotation type %s' %
                               anno.type)
            if anno.type not in unknown:
                unknown.add(anno.type)
                warnings.warn('No mapping for annotation type %s, '
                              'leaving as is' % anno.type)
            return [anno]
        target = mapping[anno.type]
        if target is None:
            return []
        return [anno.with_type(target)]
    return remap


# ---------------------------------------------------------------------
# cleanups
# ---------------------------------------------------------------------

def drop_aligned(redundant_type, reference_type):
    """
    A cleanup removing annotations of the redundant type that sit
    exactly on top of an annotation of the reference type, eg.
    `drop_aligned('underline', 'link')`
    """
    def cleanup(doc):
        "remove shadowing annotations"
        redundant = doc.where({'type': redundant_type}).alias('redundant')
        reference = doc.where({'type': reference_type}).alias('reference')
        shadows = redundant.join(reference, is_aligned_with)
        doc.remove_annotations(shadows.lefts())
    return cleanup


def drop_markers(doc):
    """
    A cleanup removing the open/close marker annotations left by a
    conversion with `keep_markers`
    """
    doc.remove_annotations(doc.where({'type': PARSE_TOKEN}))


# ---------------------------------------------------------------------
# pipeline
# ---------------------------------------------------------------------

class Pipeline:
    """
    Conversion from some payload to a finished document.

    :param producer: function from payload to node tree or token stream
    :param handlers: per node name attribute handlers (see
                     `annodoc.converter.Converter`)
    :param remap: vocabulary remap (annotation -> annotations), if any
    :param cleanups: functions modifying the converted document in place,
                     applied in order after the remap
    """
    def __init__(self, producer, handlers=None, remap=None, cleanups=(),
                 settings=None, content_type=None):
        self.producer = producer
        self.handlers = handlers
        self.remap = remap
        self.cleanups = list(cleanups)
        self.settings = settings or DEFAULT_SETTINGS
        self.content_type = content_type

    def tree(self, payload):
        """
        The node tree for a payload
        """
        produced = self.producer(payload)
        if isinstance(produced, Node):
            return produced
        return build_tree(produced)

    def run(self, payload):
        """
        Convert a payload into a document. Any error along the way is
        passed on; there is no partial result.
        """
        doc = convert(self.tree(payload), self.handlers, self.settings,
                      content_type=self.content_type)
        if self.remap is not None:
            doc = remap_document(doc, self.remap)
        for cleanup in self.cleanups:
            cleanup(doc)
        return doc
