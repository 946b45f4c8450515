'''
Decide how sitemap entries are split across documents.

Planning is pure: it describes which documents exist and what they contain,
while rendering and persisting them is left to the caller.
'''
from dataclasses import dataclass
import math
from typing import List

from yarl import URL

from .entry import SitemapEntry


@dataclass
class ChildDocument:
    ''' One leaf document of a sitemap index. '''
    delta: int
    url: str
    entries: List[SitemapEntry]


class SinglePlan:
    ''' All entries fit in one sitemap document. '''
    is_index = False

    def __init__(self, entries):
        self.entries = entries

    def __repr__(self):
        return '<SinglePlan entries={}>'.format(len(self.entries))

    @property
    def document_count(self):
        return 1


class IndexPlan:
    ''' Entries are split into child documents referenced by an index. '''
    is_index = True

    def __init__(self, entries, limit, index_url):
        '''
        Constructor.

        :param list entries: Every entry, in output order.
        :param int limit: The maximum number of entries per child.
        :param str index_url: The URL that the index is published at. Child
            URLs are derived from it.
        '''
        self.entries = entries
        self.limit = limit
        self.index_url = index_url

    def __repr__(self):
        return '<IndexPlan entries={} children={}>'.format(len(self.entries),
            self.document_count - 1)

    @property
    def document_count(self):
        ''' The number of children plus the index itself. '''
        return math.ceil(len(self.entries) / self.limit) + 1

    def child_url(self, delta):
        '''
        Get the URL of a child document.

        :param int delta: 1-based sequence number of the child.
        :rtype: str
        '''
        return str(URL(self.index_url).update_query(page=delta))

    def child_urls(self):
        ''' The URLs of all children, in order. '''
        return [self.child_url(delta)
            for delta in range(1, self.document_count)]

    def children(self):
        '''
        Lazily generate the child documents.

        :returns: A generator of ChildDocument.
        '''
        for delta, start in enumerate(range(0, len(self.entries), self.limit),
                start=1):
            yield ChildDocument(delta, self.child_url(delta),
                self.entries[start:start + self.limit])


def plan_sitemap(entries, limit, index_url):
    '''
    Choose between a single sitemap and a sitemap index.

    :param list entries: Every entry, in output order.
    :param int limit: The maximum number of entries per document.
    :param str index_url: The URL the sitemap is published at.
    :rtype: SinglePlan or IndexPlan
    '''
    if limit < 1:
        raise ValueError('Sitemap limit must be ≥1')
    if len(entries) <= limit:
        return SinglePlan(entries)
    return IndexPlan(entries, limit, index_url)
