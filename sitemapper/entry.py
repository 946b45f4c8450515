from dataclasses import dataclass, field
from typing import Any, List, Optional


@dataclass
class LanguageLink:
    ''' An alternate-language URL for a page. '''
    lang: str
    url: str


@dataclass
class NewsBlock:
    ''' The contents of a ``<news:news>`` element. '''
    publication_name: str
    publication_language: str
    title: str
    publication_date: Any = field(default=None)


@dataclass
class SitemapEntry:
    ''' One URL's sitemap record, with metadata and optional alternates. '''
    url: str
    changefreq: str
    priority: float
    lastmod: Any = field(default=None)
    links: Optional[List[LanguageLink]] = field(default=None)
    news: Optional[NewsBlock] = field(default=None)

    @classmethod
    def from_doc(cls, doc):
        '''
        Create an entry from its cached document form.

        :param dict doc:
        :rtype: SitemapEntry
        '''
        links = doc.get('links')
        if links is not None:
            links = [LanguageLink(l['lang'], l['url']) for l in links]
        news = doc.get('news')
        if news is not None:
            publication = news.get('publication', dict())
            news = NewsBlock(publication.get('name'),
                publication.get('language'), news.get('title'),
                news.get('publication_date'))
        return cls(
            url=doc['url'],
            changefreq=doc.get('changefreq', 'monthly'),
            priority=doc.get('priority', 0.5),
            lastmod=doc.get('lastmod'),
            links=links,
            news=news,
        )

    def to_doc(self):
        '''
        Convert to the plain document stored in the cache. Optional fields
        are left out entirely when they are not set.

        :rtype: dict
        '''
        doc = {
            'url': self.url,
            'changefreq': self.changefreq,
            'priority': self.priority,
        }
        if self.lastmod is not None:
            doc['lastmod'] = self.lastmod
        if self.links is not None:
            doc['links'] = [{'lang': l.lang, 'url': l.url} for l in self.links]
        if self.news is not None:
            doc['news'] = {
                'publication': {
                    'name': self.news.publication_name,
                    'language': self.news.publication_language,
                },
                'title': self.news.title,
                'publication_date': self.news.publication_date,
            }
        return doc
