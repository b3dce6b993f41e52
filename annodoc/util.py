# License: BSD3

"""
Miscellaneous utility functions
"""

from itertools import chain

from frozendict import frozendict
from tabulate import tabulate


def concat(items):
    ":: Iterable (Iterable a) -> Iterable a"
    return chain.from_iterable(items)


def freeze(value):
    """
    Immutable, hashable copy of an attribute value.

    Attribute values are strings, numbers, booleans, None, or nested
    records thereof. Mappings become `frozendict`, lists and tuples
    become tuples; anything else is returned as is.
    """
    if isinstance(value, frozendict):
        # may still hold mutable values if built by hand
        return frozendict((k, freeze(v)) for k, v in value.items())
    elif isinstance(value, dict):
        return frozendict((k, freeze(v)) for k, v in value.items())
    elif isinstance(value, (list, tuple)):
        return tuple(freeze(x) for x in value)
    else:
        return value


def thaw(value):
    """
    Inverse of `freeze`: plain dicts and lists, eg. for JSON output
    """
    if isinstance(value, (dict, frozendict)):
        return dict((k, thaw(v)) for k, v in value.items())
    elif isinstance(value, tuple):
        return [thaw(x) for x in value]
    else:
        return value


def _show_attributes(attributes):
    return ", ".join("%s=%r" % (k, attributes[k]) for k in sorted(attributes))


def annotation_table(doc, include_text=True, width=30):
    """
    Return a table of the annotations in a document, sorted by span,
    for eyeballing the output of a conversion

    :param include_text: also show (a prefix of) the text each
                         annotation covers, placeholders included
    :type include_text: bool
    """
    headers = ["start", "end", "type", "attributes"]
    if include_text:
        headers.append("text")
    rows = []
    for anno in sorted(doc.annotations()):
        row = [anno.start, anno.end, anno.type,
               _show_attributes(anno.attributes)]
        if include_text:
            txt = doc.text(anno.span)
            if len(txt) > width:
                txt = txt[:width - 3] + "..."
            row.append(txt.replace("\n", "\\n"))
        rows.append(row)
    return tabulate(rows, headers=headers)

