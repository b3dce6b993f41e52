# -*- coding: utf-8 -*-
#
# License: BSD3
# pylint: disable=invalid-name, missing-docstring

"""
Tests for annodoc.commonmark
"""

from itertools import combinations
import unittest

from annodoc.commonmark import (CONTENT_TYPE, commonmark_pipeline, parse,
                                to_canonical, tokenize)
from annodoc.converter import (OBJECT_REPLACEMENT, PARSE_TOKEN,
                               ConverterSettings)
from annodoc.pipeline import drop_markers


def visible(doc, anno):
    return doc.text(anno.span).replace(OBJECT_REPLACEMENT, '')


def only(doc, atype):
    res = doc.where({'type': atype})
    assert len(res) == 1, '%d annotations of type %s' % (len(res), atype)
    return res[0]


SAMPLE = u"""\
# Title with *emphasis*

Some **bold** text and a [link](https://example.com/a?b=1&c=2)
over two lines.

- tight
- list

1. loose

2. list

> quoted `code`

```python
print("hi")
```

![an *image*](pic.png "A title")
"""


class ParseTest(unittest.TestCase):

    def test_heading(self):
        doc = parse('## Hello *world*')
        heading = only(doc, 'heading')
        self.assertEqual(2, heading.attributes['level'])
        self.assertEqual('Hello world', visible(doc, heading))
        em = only(doc, 'em')
        self.assertEqual('world', visible(doc, em))
        self.assertTrue(heading.encloses(em))
        self.assertEqual(CONTENT_TYPE, doc.content_type)

    def test_no_inline_annotations(self):
        doc = parse('hello')
        self.assertEqual(['paragraph'], [x.type for x in doc.annotations()])
        self.assertEqual(OBJECT_REPLACEMENT + 'hello' + OBJECT_REPLACEMENT,
                         doc.content)

    def test_softbreak(self):
        doc = parse('a\nb')
        self.assertEqual('a\nb', visible(doc, only(doc, 'paragraph')))

    def test_tight_list(self):
        doc = parse('- a\n- b\n')
        self.assertIs(True, only(doc, 'bullet_list').attributes['tight'])
        self.assertEqual(2, len(doc.where({'type': 'list_item'})))

    def test_loose_list(self):
        doc = parse('3. a\n\n4. b\n')
        olist = only(doc, 'ordered_list')
        self.assertIs(False, olist.attributes['tight'])
        self.assertEqual(3, olist.attributes['start'])

    def test_fence(self):
        doc = parse('```python\nprint(1)\n```\n')
        fence = only(doc, 'fence')
        self.assertEqual('python', fence.attributes['info'])
        self.assertEqual('print(1)\n', visible(doc, fence))

    def test_fence_entities(self):
        doc = parse('``` a&amp;b\nx\n```\n')
        self.assertEqual('a&b', only(doc, 'fence').attributes['info'])

    def test_image(self):
        doc = parse('![an *alt*](x.png)')
        image = only(doc, 'image')
        self.assertEqual('an alt', image.attributes['alt'])
        self.assertEqual('x.png', image.attributes['src'])
        self.assertEqual('', visible(doc, image))
        self.assertEqual(0, len(doc.where({'type': 'em'})))

    def test_link(self):
        doc = parse('[go](https://example.com)')
        link = only(doc, 'link')
        self.assertEqual('https://example.com', link.attributes['href'])
        self.assertEqual('go', visible(doc, link))

    def test_code_padding(self):
        doc = parse('a `` `x` `` b')
        code = only(doc, 'code_inline')
        self.assertEqual(' `x` ', visible(doc, code))

    def test_handlers(self):
        doc = parse('[go](u)', handlers={
            'link': lambda tok: {'external': tok.attrs['href'] != 'u'}})
        self.assertIs(False, only(doc, 'link').attributes['external'])

    def test_markers(self):
        settings = ConverterSettings(keep_markers=True)
        doc = parse('*a*', settings=settings)
        markers = doc.where({'type': PARSE_TOKEN})
        self.assertEqual(['em_close', 'em_open',
                          'paragraph_close', 'paragraph_open'],
                         sorted(x.attributes['type'] for x in markers))
        drop_markers(doc)
        self.assertEqual(['em', 'paragraph'],
                         sorted(x.type for x in doc.annotations()))


class SampleTest(unittest.TestCase):

    def setUp(self):
        self.doc = parse(SAMPLE, settings=ConverterSettings(keep_markers=True))

    def test_well_formed(self):
        for anno in self.doc.annotations():
            self.assertTrue(0 <= anno.start <= anno.end <= len(self.doc))

    def test_nesting(self):
        annos = [x for x in self.doc.annotations() if x.type != PARSE_TOKEN]
        for a1, a2 in combinations(annos, 2):
            disjoint = a1.end <= a2.start or a2.end <= a1.start
            self.assertTrue(disjoint or a1.encloses(a2) or a2.encloses(a1))

    def test_markers_pair_up(self):
        markers = self.doc.where({'type': PARSE_TOKEN})
        finals = [x for x in self.doc.annotations() if x.type != PARSE_TOKEN]
        self.assertEqual(2 * len(finals), len(markers))
        for anno in finals:
            opener = markers.where({'start': anno.start,
                                    'end': anno.start + 1})
            self.assertEqual([anno.type + '_open'],
                             [x.attributes['type'] for x in opener])

    def test_types(self):
        types = set(x.type for x in self.doc.annotations())
        for atype in ['heading', 'em', 'strong', 'link', 'bullet_list',
                      'ordered_list', 'list_item', 'blockquote',
                      'code_inline', 'fence', 'image', 'paragraph']:
            self.assertIn(atype, types)

    def test_lists(self):
        self.assertIs(True, only(self.doc, 'bullet_list').attributes['tight'])
        self.assertIs(False,
                      only(self.doc, 'ordered_list').attributes['tight'])

    def test_image_title(self):
        image = only(self.doc, 'image')
        self.assertEqual('A title', image.attributes['title'])
        self.assertEqual('an image', image.attributes['alt'])


class CanonicalTest(unittest.TestCase):

    def test_vocabulary(self):
        doc = commonmark_pipeline(remap=to_canonical).run(SAMPLE)
        types = set(x.type for x in doc.annotations())
        self.assertIn('italic', types)
        self.assertIn('bold', types)
        self.assertIn('code', types)
        self.assertIn('code-block', types)
        self.assertIn('list-item', types)
        self.assertNotIn('em', types)
        link = only(doc, 'link')
        self.assertEqual({'url': 'https://example.com/a?b=1&c=2'},
                         dict(link.attributes))
        lists = doc.where({'type': 'list'})
        self.assertEqual(['bulleted', 'numbered'],
                         sorted(x.attributes['type'] for x in lists))

    def test_markers_dropped(self):
        pipeline = commonmark_pipeline(
            remap=to_canonical,
            settings=ConverterSettings(keep_markers=True))
        doc = pipeline.run('*a*')
        self.assertEqual(['italic', 'paragraph'],
                         sorted(x.type for x in doc.annotations()))

    def test_canonical_spans_unchanged(self):
        doc = parse(SAMPLE)
        canonical = commonmark_pipeline(remap=to_canonical).run(SAMPLE)
        self.assertEqual(doc.content, canonical.content)
        self.assertEqual(sorted(x.span for x in doc.annotations()),
                         sorted(x.span for x in canonical.annotations()))


def test_tokenize():
    tokens = tokenize('# x')
    assert [t.type for t in tokens] ==\
        ['heading_open', 'inline', 'heading_close']
