# -*- coding: utf-8 -*-
#
# License: BSD3
# pylint: disable=too-many-public-methods, invalid-name, missing-docstring

"""
Tests for annodoc
"""

from collections import Counter
from itertools import combinations, product
import time
import unittest
import warnings

from frozendict import frozendict
import nltk.tree

from annodoc.annotation import Annotation, Document, InvalidRangeError, Span
from annodoc.converter import (AttributeComputationError, ConverterSettings,
                               OBJECT_REPLACEMENT, PARSE_TOKEN, convert)
from annodoc.pipeline import (Pipeline, compose_remaps, drop_aligned,
                              drop_markers, identity_remap, remap_document,
                              rename_types)
from annodoc.query import (Join, Selection, encloses, is_aligned_with,
                           join, overlaps, select, where)
from annodoc.tree import Node, UnbalancedTreeError, build_tree
from annodoc.util import annotation_table, freeze, thaw


class FakeToken:
    """
    Stand-in for a markdown-it token
    """
    def __init__(self, type, tag='', nesting=0, content='', children=None,
                 attrs=None, hidden=False, info=''):
        self.type = type
        self.tag = tag
        self.nesting = nesting
        self.content = content
        self.children = children
        self.attrs = attrs
        self.hidden = hidden
        self.info = info


def opening(name, **kwargs):
    return FakeToken(name + '_open', nesting=1, **kwargs)


def closing(name, **kwargs):
    return FakeToken(name + '_close', nesting=-1, **kwargs)


def mk_node(name, children=None, **kwargs):
    "non-text node with its open token"
    tok = opening(name, **kwargs)
    return Node(name, open=tok, close=tok, children=children)


def mk_root(*children):
    return Node('root', children=list(children))


def anno(atype, start, end, **attributes):
    return Annotation(atype, Span(start, end), attributes)


def visible(doc, annotation):
    "text covered by an annotation, without placeholders"
    return doc.text(annotation.span).replace(OBJECT_REPLACEMENT, '')


def assert_laminar(annotations):
    """
    any two annotations are either disjoint or one contains the other
    """
    for a1, a2 in combinations(annotations, 2):
        disjoint = a1.end <= a2.start or a2.end <= a1.start
        assert disjoint or a1.encloses(a2) or a2.encloses(a1), (a1, a2)


def assert_well_formed(doc):
    for x in doc.annotations():
        assert 0 <= x.start <= x.end <= len(doc.content), x


# ---------------------------------------------------------------------
# spans
# ---------------------------------------------------------------------


class SpanTest(unittest.TestCase):
    "tests for annodoc.annotation.Span"

    def assertOverlap(self, expected, pair1, pair2):
        "true if `pair1.overlaps(pair2) == expected` (modulo boxing)"
        (x1, y1) = pair1
        (x2, y2) = pair2
        (rx, ry) = expected
        o = Span(x1, y1).overlaps(Span(x2, y2))
        self.assertTrue(o)
        self.assertEqual(Span(rx, ry), o)

    def assertNotOverlap(self, pair1, pair2):
        (x1, y1) = pair1
        (x2, y2) = pair2
        self.assertIsNone(Span(x1, y1).overlaps(Span(x2, y2)))

    def test_overlap(self):
        "Span.overlaps() function"

        self.assertNotOverlap((5, 10), (11, 12))
        self.assertNotOverlap((11, 12), (5, 10))

        # should not overlap at edges
        self.assertNotOverlap((5, 10), (10, 15))

        self.assertOverlap((6, 9), (5, 10), (6, 9))
        self.assertOverlap((7, 10), (7, 12), (5, 10))

    def test_aligned(self):
        self.assertTrue(Span(5, 12).is_aligned_with(Span(5, 12)))
        self.assertFalse(Span(5, 12).is_aligned_with(Span(5, 11)))
        self.assertFalse(Span(5, 12).is_aligned_with(None))

    def test_ordering(self):
        spans = [Span(3, 4), Span(1, 9), Span(1, 2)]
        self.assertEqual([Span(1, 2), Span(1, 9), Span(3, 4)], sorted(spans))
        self.assertTrue(Span(1, 2) <= Span(1, 2))
        self.assertTrue(Span(3, 4) >= Span(1, 9))
        self.assertEqual(Span(2, 5), Span(0, 3).shift(2))


# ---------------------------------------------------------------------
# annotations and documents
# ---------------------------------------------------------------------


class AnnotationTest(unittest.TestCase):

    def test_attributes_frozen(self):
        x = anno('link', 0, 3, url='u', meta={'tags': ['a', 'b']})
        self.assertIsInstance(x.attributes, frozendict)
        self.assertIsInstance(x.attributes['meta'], frozendict)
        self.assertEqual(('a', 'b'), x.attributes['meta']['tags'])
        with self.assertRaises(TypeError):
            x.attributes['url'] = 'v'

    def test_value_semantics(self):
        x1 = anno('link', 0, 3, url='u', meta={'n': [1]})
        x2 = anno('link', 0, 3, url='u', meta={'n': [1]})
        self.assertEqual(x1, x2)
        self.assertEqual(1, len(set([x1, x2])))
        self.assertNotEqual(x1, x1.with_type('underline'))
        self.assertNotEqual(x1, x1.shift(1))

    def test_with_attributes_copies(self):
        x = anno('heading', 0, 3, level=1)
        y = x.with_attributes({'level': 2, 'id': 'top'})
        self.assertEqual(1, x.attributes['level'])
        self.assertEqual({'level': 2, 'id': 'top'}, dict(y.attributes))

    def test_canonical_form(self):
        x = anno('list', 2, 8, tight=True, meta={'n': [1, 2]})
        record = x.to_dict()
        self.assertEqual({'type': 'list',
                          'attributes': {'tight': True,
                                         'meta': {'n': [1, 2]}},
                          'start': 2,
                          'end': 8}, record)
        self.assertEqual(x, Annotation.from_dict(record))


def test_freeze_thaw():
    value = {'a': [1, {'b': 2}], 'c': 'd'}
    frozen = freeze(value)
    assert hash(frozen) == hash(freeze(value))
    assert thaw(frozen) == value


class DocumentTest(unittest.TestCase):

    def test_append(self):
        doc = Document()
        self.assertEqual(Span(0, 5), doc.append('hello'))
        self.assertEqual(Span(5, 11), doc.append(' world'))
        self.assertEqual('world', doc.text(Span(6, 11)))

    def test_append_then_edit(self):
        doc = Document('ab')
        for piece in ['cd', 'ef', 'gh']:
            doc.append(piece)
        self.assertEqual(8, len(doc))
        doc.insert_text(4, 'XY')
        doc.append('!')
        self.assertEqual('abcdXYefgh!', doc.content)
        doc.delete_text(0, 2)
        self.assertEqual(9, len(doc))
        self.assertEqual('cdXYefgh!', doc.content)
        self.assertEqual('cdXYefgh!', doc.to_dict()['content'])

    def test_invalid_range(self):
        doc = Document('hello')
        self.assertRaises(InvalidRangeError, doc.add_annotation,
                          anno('x', 3, 2))
        self.assertRaises(InvalidRangeError, doc.add_annotation,
                          anno('x', 0, 6))
        self.assertRaises(InvalidRangeError, doc.add_annotation,
                          anno('x', -1, 2))
        doc.add_annotation(anno('x', 0, 5))
        doc.add_annotation(anno('x', 5, 5))
        self.assertEqual(2, len(doc.annotations()))

    def test_batch_all_or_nothing(self):
        doc = Document('hello')
        with self.assertRaises(InvalidRangeError):
            doc.add_annotations([anno('x', 0, 2), anno('y', 0, 9)])
        self.assertEqual([], doc.annotations())

    def test_annotations_copy(self):
        doc = Document('hello', [anno('x', 0, 2)])
        doc.annotations().append(anno('y', 0, 1))
        self.assertEqual(1, len(doc.annotations()))

    def test_insert_text(self):
        hello = anno('a', 0, 5)
        upto = anno('d', 0, 6)
        world = anno('b', 6, 11)
        straddle = anno('c', 3, 8)
        doc = Document('hello world', [hello, upto, world, straddle])
        doc.insert_text(6, 'big ')
        self.assertEqual('hello big world', doc.content)
        spans = dict((x.type, x.span) for x in doc.annotations())
        self.assertEqual(Span(0, 5), spans['a'])
        self.assertEqual(Span(0, 6), spans['d'])
        self.assertEqual(Span(10, 15), spans['b'])
        self.assertEqual(Span(3, 12), spans['c'])
        self.assertEqual('world', doc.text(spans['b']))
        assert_well_formed(doc)

    def test_insert_out_of_range(self):
        doc = Document('abc')
        self.assertRaises(InvalidRangeError, doc.insert_text, 4, 'x')
        self.assertRaises(InvalidRangeError, doc.insert_text, -1, 'x')

    def test_delete_text(self):
        doc = Document('hello world',
                       [anno('a', 0, 5), anno('b', 6, 11), anno('c', 3, 8)])
        doc.delete_text(2, 7)
        self.assertEqual('heorld', doc.content)
        spans = dict((x.type, x.span) for x in doc.annotations())
        self.assertEqual(Span(0, 2), spans['a'])
        self.assertEqual(Span(2, 6), spans['b'])
        self.assertEqual(Span(2, 3), spans['c'])
        self.assertEqual('orld', doc.text(spans['b']))
        assert_well_formed(doc)

    def test_delete_swallows(self):
        doc = Document('hello world', [anno('a', 0, 5)])
        doc.delete_text(0, 6)
        self.assertEqual([Span(0, 0)], [x.span for x in doc.annotations()])
        self.assertRaises(InvalidRangeError, doc.delete_text, 3, 99)

    def test_remove_by_identity(self):
        x1 = anno('underline', 0, 2)
        x2 = anno('underline', 0, 2)
        doc = Document('abc', [x1, x2])
        doc.remove_annotations([x1])
        remaining = doc.annotations()
        self.assertEqual(1, len(remaining))
        self.assertIs(x2, remaining[0])

    def test_canonical_form(self):
        doc = Document('ab', [anno('x', 0, 1, n=1)],
                       content_type='text/plain')
        doc2 = Document.from_dict(doc.to_dict())
        self.assertEqual(doc.content, doc2.content)
        self.assertEqual('text/plain', doc2.content_type)
        self.assertEqual(doc.annotations(), doc2.annotations())


# ---------------------------------------------------------------------
# node trees
# ---------------------------------------------------------------------


class BuildTreeTest(unittest.TestCase):

    def test_nesting(self):
        tokens = [opening('blockquote'),
                  opening('paragraph'),
                  FakeToken('inline', children=[FakeToken('text',
                                                          content='hi')]),
                  closing('paragraph'),
                  closing('blockquote')]
        root = build_tree(tokens)
        self.assertEqual(['blockquote'], [x.name for x in root.children])
        quote = root.children[0]
        self.assertIs(root, quote.parent)
        self.assertEqual('blockquote_close', quote.close.type)
        para = quote.children[0]
        # the inline wrapper leaves no trace
        self.assertEqual(['text'], [x.name for x in para.children])
        self.assertEqual('hi', para.gather_text())

    def test_softbreaks(self):
        inline = FakeToken('inline', children=[
            FakeToken('text', content='a'),
            FakeToken('softbreak', tag='br'),
            FakeToken('softbreak', tag='br'),
            FakeToken('text', content='b'),
            FakeToken('softbreak', tag='br'),
            FakeToken('text', content='c')])
        root = build_tree([opening('paragraph'), inline,
                           closing('paragraph')])
        para = root.children[0]
        self.assertEqual(['a', '\n', 'b', '\n', 'c'],
                         [x.value for x in para.children])

    def test_code_padding(self):
        inline = FakeToken('inline', children=[
            FakeToken('code_inline', content='`x'),
            FakeToken('code_inline', content='y`'),
            FakeToken('code_inline', content='z')])
        root = build_tree([inline])
        codes = root.children
        self.assertEqual(['code_inline'] * 3, [x.name for x in codes])
        self.assertEqual([' `x', 'y` ', 'z'],
                         [x.gather_text() for x in codes])
        for code in codes:
            self.assertIs(code.open, code.close)
            self.assertEqual(1, len(code.children))

    def test_token_with_children(self):
        image = FakeToken('image', attrs={'src': 'x.png'}, children=[
            FakeToken('text', content='alt')])
        root = build_tree([FakeToken('inline', children=[image])])
        self.assertEqual('image', root.children[0].name)
        self.assertEqual('alt', root.children[0].gather_text())

    def test_close_without_open(self):
        self.assertRaises(UnbalancedTreeError, build_tree,
                          [closing('paragraph')])
        inline = FakeToken('inline', children=[closing('em')])
        self.assertRaises(UnbalancedTreeError, build_tree,
                          [opening('paragraph'), inline,
                           closing('paragraph')])

    def test_open_without_close(self):
        self.assertRaises(UnbalancedTreeError, build_tree,
                          [opening('paragraph')])


def test_gather_text_order():
    node = mk_node('p', [Node.text('a'),
                         mk_node('em', [Node.text('b'),
                                        mk_node('strong', [Node.text('c')])]),
                         Node.text('d')])
    assert node.gather_text() == 'abcd'


def test_gather_text_missing_value():
    node = mk_node('p', [Node.text(None), Node.text('x')])
    assert node.gather_text() == 'x'


def test_from_nltk():
    tree = nltk.tree.Tree.fromstring('(S (NP (D the) (N cat)) (VP (V sat)))')
    root = Node.from_nltk(tree)
    assert root.name == 'S'
    assert [x.name for x in root.children] == ['NP', 'VP']
    assert root.gather_text() == 'thecatsat'
    assert root.children[0].parent is root


# ---------------------------------------------------------------------
# conversion
# ---------------------------------------------------------------------


class ConverterTest(unittest.TestCase):

    def test_heading_with_emphasis(self):
        heading = mk_node('heading', tag='h2', children=[
            mk_node('em', [Node.text('a')]),
            mk_node('em', [Node.text('b')])])
        doc = convert(mk_root(heading))
        annos = doc.annotations()
        self.assertEqual(3, len(annos))
        headings = [x for x in annos if x.type == 'heading']
        ems = sorted(x for x in annos if x.type == 'em')
        self.assertEqual(1, len(headings))
        self.assertEqual(2, len(ems))
        head = headings[0]
        self.assertEqual(2, head.attributes['level'])
        for em in ems:
            self.assertTrue(head.start < em.start and em.end < head.end)
        self.assertEqual(Span(0, 8), head.span)
        self.assertEqual([Span(1, 4), Span(4, 7)], [x.span for x in ems])
        self.assertEqual(['a', 'b'], [visible(doc, x) for x in ems])
        self.assertEqual(8, len(doc.content))

    def test_plain_text(self):
        doc = convert(mk_root(Node.text('just '), Node.text('text')))
        self.assertEqual('just text', doc.content)
        self.assertEqual([], doc.annotations())

    def test_empty_node(self):
        doc = convert(mk_root(mk_node('hr')))
        self.assertEqual(OBJECT_REPLACEMENT * 2, doc.content)
        self.assertEqual([Span(0, 2)], [x.span for x in doc.annotations()])

    def test_markers(self):
        settings = ConverterSettings(keep_markers=True)
        para = mk_node('paragraph', [Node.text('hi')])
        doc = convert(mk_root(para), settings=settings)
        markers = sorted((x.span, x.attributes['type'])
                         for x in doc.annotations() if x.type == PARSE_TOKEN)
        self.assertEqual([(Span(0, 1), 'paragraph_open'),
                          (Span(3, 4), 'paragraph_close')], markers)
        self.assertEqual(3, len(doc.annotations()))

    def test_bad_placeholder(self):
        self.assertRaises(ValueError, ConverterSettings, placeholder='ab')

    def test_base_attributes(self):
        pairs = mk_node('link', [Node.text('go')],
                        attrs=[['href', 'http://x'], ['title', 't']])
        mapping = mk_node('link', [Node.text('go')],
                          attrs={'href': 'http://y'})
        doc = convert(mk_root(pairs, mapping))
        urls = sorted(x.attributes['href'] for x in doc.annotations())
        self.assertEqual(['http://x', 'http://y'], urls)

    def test_tight_list(self):
        def item(hidden):
            return mk_node('list_item', [
                mk_node('paragraph', [Node.text('x')], hidden=hidden)])
        tight = mk_node('bullet_list', [item(False), item(True)])
        loose = mk_node('ordered_list', [item(False), item(False)])
        doc = convert(mk_root(tight, loose))
        lists = dict((x.type, x) for x in doc.annotations()
                     if x.type.endswith('_list'))
        self.assertIs(True, lists['bullet_list'].attributes['tight'])
        self.assertIs(False, lists['ordered_list'].attributes['tight'])

    def test_image_alt(self):
        image = Node('image', open=FakeToken('image', attrs={'src': 'x.png',
                                                             'alt': ''}),
                     children=[Node.text('an '),
                               mk_node('em', [Node.text('alt')]),
                               Node.text(' text')])
        doc = convert(mk_root(Node.text('see '), image))
        annos = doc.annotations()
        self.assertEqual(['image'], [x.type for x in annos])
        img = annos[0]
        self.assertEqual('an alt text', img.attributes['alt'])
        self.assertEqual('x.png', img.attributes['src'])
        # no visible content of its own
        self.assertEqual('see ' + OBJECT_REPLACEMENT * 2, doc.content)
        self.assertEqual(Span(4, 6), img.span)
        # the input tree is left alone
        self.assertEqual(3, len(image.children))

    def test_fence_info(self):
        fence = FakeToken('fence', info=' python&amp;more ',
                          content='print(1)\n')
        doc = convert(build_tree([fence]))
        annos = doc.annotations()
        self.assertEqual('python&more', annos[0].attributes['info'])
        self.assertEqual('print(1)\n', visible(doc, annos[0]))

    def test_handlers(self):
        def link_handler(token):
            return {'url': dict(token.attrs)['href'], 'level': 'ignored'}
        link = mk_node('link', [Node.text('go')], attrs=[['href', 'u']])
        heading = mk_node('heading', [link], tag='h3')
        doc = convert(mk_root(heading),
                      handlers={'link': link_handler,
                                'heading': lambda tok: {'level': 9}})
        attrs = dict((x.type, dict(x.attributes)) for x in doc.annotations())
        self.assertEqual({'href': 'u', 'url': 'u', 'level': 'ignored'},
                         attrs['link'])
        # handlers have the last word
        self.assertEqual(9, attrs['heading']['level'])

    def test_handler_failure(self):
        def broken(_):
            return 1 / 0
        para = mk_node('paragraph', [Node.text('x')])
        with self.assertRaises(AttributeComputationError) as ctx:
            convert(mk_root(para), handlers={'paragraph': broken})
        self.assertIsInstance(ctx.exception.__cause__, ZeroDivisionError)

    def test_handler_bad_patch(self):
        para = mk_node('paragraph', [Node.text('x')])
        self.assertRaises(AttributeComputationError, convert,
                          mk_root(para), {'paragraph': lambda tok: None})

    def test_bad_heading_tag(self):
        heading = mk_node('heading', [Node.text('x')], tag='hx')
        self.assertRaises(AttributeComputationError, convert,
                          mk_root(heading))

    def test_unused_handler_warns(self):
        with self.assertWarns(UserWarning):
            convert(mk_root(Node.text('x')), {'image': lambda tok: {}})

    def test_stolen_child(self):
        child = Node.text('x')
        mk_node('paragraph', [child])
        thief = mk_node('blockquote')
        thief.children.append(child)
        self.assertRaises(UnbalancedTreeError, convert, mk_root(thief))

    def test_deep_tree(self):
        depth = 5000
        top = node = mk_node('blockquote')
        for _ in range(depth - 1):
            node = node.add_child(mk_node('blockquote'))
        node.add_child(Node.text('deep'))
        doc = convert(mk_root(top))
        self.assertEqual(depth, len(doc.annotations()))
        self.assertEqual(2 * depth + 4, len(doc.content))

    def test_many_siblings(self):
        count = 40000
        line = 'x' * 100
        root = mk_root(*[mk_node('paragraph', [Node.text(line)])
                         for _ in range(count)])
        before = time.time()
        doc = convert(root)
        self.assertLess(time.time() - before, 20)
        self.assertEqual(count * 102, len(doc))
        self.assertEqual(count * 102, len(doc.content))
        last = max(doc.annotations())
        self.assertEqual(line, visible(doc, last))

    def test_default_settings(self):
        para = mk_node('paragraph', [Node.text('x')])
        doc = convert(mk_root(para), settings=None)
        self.assertEqual(OBJECT_REPLACEMENT + 'x' + OBJECT_REPLACEMENT,
                         doc.content)
        self.assertEqual(['paragraph'], [x.type for x in doc.annotations()])

    def test_image_alt_missing_text(self):
        image = Node('image', open=FakeToken('image'),
                     children=[Node.text(None), Node.text('alt')])
        doc = convert(mk_root(image))
        self.assertEqual('alt', doc.annotations()[0].attributes['alt'])


def test_nesting_fidelity():
    tree = nltk.tree.Tree.fromstring(
        '(S (NP (D the) (N cat)) (VP (V sat) (PP (P on) (NP (D the) '
        '(N mat)))))')
    doc = convert(Node('root', children=[Node.from_nltk(tree)]))
    annos = doc.annotations()
    assert len(annos) == 11
    assert_well_formed(doc)
    assert_laminar(annos)
    sentence = [x for x in annos if x.type == 'S'][0]
    assert all(sentence.encloses(x) for x in annos)
    assert visible(doc, sentence) == 'thecatsatonthemat'
    pps = [x for x in annos if x.type == 'PP']
    assert [visible(doc, x) for x in pps] == ['onthemat']


def test_node_annotations_bracket_descendants():
    """
    each annotation spans exactly the text of its subtree plus its two
    placeholders
    """
    heading = mk_node('heading', tag='h1', children=[
        Node.text('x'),
        mk_node('strong', [Node.text('yy'), mk_node('em', [Node.text('z')])]),
        Node.text('w')])
    doc = convert(mk_root(Node.text('pre'), heading, Node.text('post')))
    by_type = dict((x.type, x) for x in doc.annotations())
    assert visible(doc, by_type['heading']) == 'xyyzw'
    assert visible(doc, by_type['strong']) == 'yyz'
    assert visible(doc, by_type['em']) == 'z'
    for x in by_type.values():
        txt = doc.text(x.span)
        assert txt[0] == txt[-1] == OBJECT_REPLACEMENT
    assert doc.content.startswith('pre') and doc.content.endswith('post')


# ---------------------------------------------------------------------
# queries
# ---------------------------------------------------------------------


def gdocs_like(underline_end):
    return Document('x' * 20, [anno('link', 5, 12, url='https://x'),
                               anno('underline', 5, underline_end),
                               anno('bold', 0, 3)])


class QueryTest(unittest.TestCase):

    def test_aligned_join(self):
        doc = gdocs_like(12)
        links = doc.where(lambda a: a.type == 'link').alias('links')
        underlines = doc.where({'type': 'underline'}).alias('underlines')
        pairs = links.join(underlines, is_aligned_with)
        self.assertEqual(1, len(pairs))
        rec = pairs.records()[0]
        self.assertEqual('link', rec['links'].type)
        self.assertEqual('underline', rec['underlines'].type)

    def test_misaligned_join(self):
        doc = gdocs_like(11)
        links = doc.where({'type': 'link'})
        underlines = doc.where({'type': 'underline'})
        self.assertEqual(0, len(links.join(underlines, is_aligned_with)))
        # still overlapping though
        self.assertEqual(1, len(links.join(underlines, overlaps)))
        self.assertEqual(1, len(links.join(underlines, encloses)))

    def test_where_conditions(self):
        annos = [anno('heading', 0, 3, level=1),
                 anno('heading', 4, 9, level=2),
                 anno('heading', 10, 12, level=2, id='x'),
                 anno('paragraph', 4, 9)]
        sel = select(annos)
        self.assertEqual(2, len(sel.where({'attributes': {'level': 2}})))
        self.assertEqual(1, len(sel.where({'start': 4, 'end': 9,
                                           'type': 'heading'})))
        self.assertEqual([annos[2]], list(sel.where(
            {'type': 'heading', 'attributes': {'level': 2, 'id': 'x'}})))
        self.assertEqual(0, len(sel.where({'attributes': {'missing': None}})))
        self.assertRaises(ValueError, sel.where, {'colour': 'red'})

    def test_where_keeps_order(self):
        annos = [anno('a', 5, 6), anno('b', 0, 1), anno('a', 2, 3)]
        sel = where(annos, {'type': 'a'})
        self.assertEqual([annos[0], annos[2]], list(sel))

    def test_alias(self):
        sel = select([anno('a', 0, 1)])
        named = sel.alias('as')
        self.assertEqual('as', named.label)
        self.assertIsNone(sel.label)
        self.assertEqual(list(sel), list(named))

    def test_empty(self):
        empty = Selection()
        some = select([anno('a', 0, 1)])
        self.assertEqual(0, len(empty.where(lambda a: True)))
        self.assertEqual(0, len(empty.join(some, is_aligned_with)))
        self.assertEqual(0, len(some.join(empty, is_aligned_with)))
        self.assertIsInstance(join([], [], overlaps), Join)

    def test_join_labels(self):
        left = select([anno('a', 0, 1)], 'lefty')
        right = select([anno('b', 0, 1)])
        res = left.join(right, is_aligned_with)
        self.assertEqual([{'lefty': left[0], 'right': right[0]}],
                         res.records())

    def test_lefts_rights(self):
        links = select([anno('link', 0, 5), anno('link', 6, 9)])
        styles = select([anno('underline', 0, 5), anno('italic', 0, 5)])
        res = links.join(styles, is_aligned_with)
        self.assertEqual(2, len(res))
        self.assertEqual([links[0]], res.lefts())
        self.assertEqual(list(styles), res.rights())

    def test_no_mutation(self):
        doc = gdocs_like(12)
        before = doc.annotations()
        doc.where({'type': 'link'}).join(doc.where({'type': 'underline'}),
                                         is_aligned_with)
        self.assertEqual(before, doc.annotations())


def test_alignment_symmetry():
    spans = [(0, 0), (0, 3), (2, 3), (0, 3), (3, 5)]
    annos = [anno(t, s, e) for t, (s, e) in zip('abcde', spans)]
    for a1, a2 in product(annos, annos):
        assert is_aligned_with(a1, a2) == is_aligned_with(a2, a1)
    assert is_aligned_with(annos[1], annos[3])
    assert not is_aligned_with(annos[1], annos[2])


def test_join_completeness():
    lefts = [anno('l', s, e) for s, e in [(0, 4), (2, 6), (7, 9), (3, 3)]]
    rights = [anno('r', s, e) for s, e in [(1, 2), (3, 8), (8, 12)]]
    for relation in [is_aligned_with, overlaps, encloses]:
        res = join(lefts, rights, relation)
        expected = [(x, y) for x in lefts for y in rights if relation(x, y)]
        assert list(res) == expected


# ---------------------------------------------------------------------
# pipeline
# ---------------------------------------------------------------------


def paragraph_tokens(*words):
    inline = FakeToken('inline', children=[
        FakeToken('text', content=w) if w != '*' else FakeToken('softbreak')
        for w in words])
    return [opening('paragraph'), inline, closing('paragraph')]


class PipelineTest(unittest.TestCase):

    def test_identity_remap(self):
        heading = mk_node('heading', tag='h2', children=[
            mk_node('em', [Node.text('a')]), Node.text('b')])
        doc = convert(mk_root(heading, mk_node('hr')),
                      settings=ConverterSettings(keep_markers=True))
        doc2 = remap_document(doc, identity_remap)
        self.assertEqual(doc.content, doc2.content)
        self.assertEqual(Counter(doc.annotations()),
                         Counter(doc2.annotations()))

    def test_rename_types(self):
        doc = Document('abcdef', [anno('em', 0, 2), anno('paragraph', 0, 6),
                                  anno('mystery', 1, 2),
                                  anno('mystery', 3, 4)])
        remap = rename_types({'em': 'italic', 'paragraph': None})
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            doc2 = remap_document(doc, remap)
        self.assertEqual(1, len(caught))
        self.assertEqual(['italic', 'mystery', 'mystery'],
                         sorted(x.type for x in doc2.annotations()))
        strict = rename_types({'em': 'italic'}, strict=True)
        self.assertRaises(KeyError, remap_document, doc, strict)

    def test_compose_remaps(self):
        def split(anno_):
            mid = (anno_.start + anno_.end) // 2
            return [anno_.with_span(Span(anno_.start, mid)),
                    anno_.with_span(Span(mid, anno_.end))]
        remap = compose_remaps(split, rename_types({'x': 'y'}))
        doc = remap_document(Document('abcd', [anno('x', 0, 4)]), remap)
        self.assertEqual([('y', Span(0, 2)), ('y', Span(2, 4))],
                         sorted((x.type, x.span) for x in doc.annotations()))

    def test_remap_out_of_range(self):
        doc = Document('ab', [anno('x', 0, 2)])
        self.assertRaises(InvalidRangeError, remap_document, doc,
                          lambda a: [a.shift(5)])

    def test_drop_aligned(self):
        doc = gdocs_like(12)
        doc.add_annotation(anno('underline', 13, 15))
        drop_aligned('underline', 'link')(doc)
        types = sorted((x.type, x.start) for x in doc.annotations())
        self.assertEqual([('bold', 0), ('link', 5), ('underline', 13)],
                         types)
        links = doc.where({'type': 'link'})
        underlines = doc.where({'type': 'underline'})
        self.assertEqual(0, len(links.join(underlines, is_aligned_with)))

    def test_drop_aligned_keeps_misaligned(self):
        doc = gdocs_like(11)
        drop_aligned('underline', 'link')(doc)
        self.assertEqual(3, len(doc.annotations()))

    def test_drop_markers(self):
        doc = convert(mk_root(mk_node('paragraph', [Node.text('x')])),
                      settings=ConverterSettings(keep_markers=True))
        self.assertEqual(3, len(doc.annotations()))
        drop_markers(doc)
        self.assertEqual(['paragraph'], [x.type for x in doc.annotations()])

    def test_run(self):
        pipeline = Pipeline(lambda words: paragraph_tokens(*words),
                            handlers={'paragraph': lambda tok: {'n': 1}},
                            remap=rename_types({'paragraph': 'para',
                                                 PARSE_TOKEN: PARSE_TOKEN}),
                            cleanups=[drop_markers],
                            settings=ConverterSettings(keep_markers=True),
                            content_type='text/words')
        doc = pipeline.run(['a', '*', '*', 'b'])
        self.assertEqual('text/words', doc.content_type)
        self.assertEqual(OBJECT_REPLACEMENT + 'a\nb' + OBJECT_REPLACEMENT,
                         doc.content)
        annos = doc.annotations()
        self.assertEqual(['para'], [x.type for x in annos])
        self.assertEqual({'n': 1}, dict(annos[0].attributes))

    def test_run_tree_producer(self):
        pipeline = Pipeline(lambda txt: mk_root(Node.text(txt)))
        doc = pipeline.run('hello')
        self.assertEqual('hello', doc.content)

    def test_run_default_settings(self):
        pipeline = Pipeline(lambda words: paragraph_tokens(*words),
                            settings=None)
        doc = pipeline.run(['x'])
        self.assertEqual(OBJECT_REPLACEMENT + 'x' + OBJECT_REPLACEMENT,
                         doc.content)
        self.assertEqual(0, len(doc.where({'type': PARSE_TOKEN})))

    def test_run_unbalanced(self):
        pipeline = Pipeline(lambda _: [closing('paragraph')])
        self.assertRaises(UnbalancedTreeError, pipeline.run, None)


# ---------------------------------------------------------------------
# util
# ---------------------------------------------------------------------


def test_annotation_table():
    doc = Document('hello\nworld', [anno('line', 0, 5, n=1),
                                    anno('para', 0, 11)])
    table = annotation_table(doc)
    assert 'line' in table
    assert 'n=1' in table
    assert 'hello\\nworld' in table
    assert 'text' not in annotation_table(doc, include_text=False)
