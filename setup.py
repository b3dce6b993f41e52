"""
annodoc setup: annodoc is a library for representing rich text as a
plain text buffer plus standoff annotations, and for building and
querying those annotations
"""

from setuptools import setup, find_packages

REQS = [
    'frozendict >= 2.0',
    'markdown-it-py >= 2.0',
    'nltk >= 3.0.0',
    'tabulate',
]

TEST_REQS = [
    'pytest',
]


setup(name='annodoc',
      version='0.1',
      python_requires='>=3.7',
      packages=find_packages(include=['annodoc', 'annodoc.*']),
      install_requires=REQS,
      extras_require={'test': TEST_REQS})
