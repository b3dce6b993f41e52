"""
The annodoc library represents rich text as a single plain text buffer
plus a standoff collection of annotations (typed spans with attributes).
It has a two-layer structure:

* base layer (annotations, node trees, conversion, queries, pipeline)
* source layer (specific to input formats, currently CommonMark)

Layers
~~~~~~
The base layer provides five sublayers:

* annotation (annodoc.annotation): the document itself, a text buffer and
  the annotations over it, with the primitives needed to edit the buffer
  without leaving annotations dangling

* tree (annodoc.tree): the node trees that format-specific token producers
  hand over, and a builder for flat markdown-it style token streams

* converter (annodoc.converter): depth-first walk from a node tree to a
  document, computing annotation boundaries and late-bound attributes

* query (annodoc.query): selections, joins and span relations over one or
  more annotation collections, eg. to find spans that exactly coincide

* pipeline (annodoc.pipeline): producer, converter, vocabulary remap and
  cleanup passes, in that order

The source layer is meant to stay thin: a source only needs to produce
node trees (or token streams) and, optionally, a remap into the canonical
vocabulary ::

        commonmark                        [source layer]
            |
            v
        pipeline ------------+
            |                |
            v                v
        converter ----> annotation <---- query
            |                                  [base layer]
            v
          tree
"""
