'''
Collect sitemap entries for every configured content type.

Content types, the pages within a content type, and the localizations of a
page are each resolved in their own Trio task. Every task writes into a slot
that no other task touches (a distinct dict key or list index), and results
are only read back after the enclosing nursery has exited.
'''
from dataclasses import dataclass, field
import itertools
import logging
from typing import Dict, List

from yarl import URL
import trio

from .entry import LanguageLink, NewsBlock, SitemapEntry
from .pattern import PatternResolutionError
from .settings import UNDEFINED_LOCALE


logger = logging.getLogger(__name__)
HOMEPAGE_URL = '/'


@dataclass
class CollectedEntries:
    ''' The result of one collection pass. '''
    cache_entries: Dict[str, Dict[str, SitemapEntry]] = field(
        default_factory=dict)
    sitemap_entries: List[SitemapEntry] = field(default_factory=list)


def is_root_url(url, hostname=None):
    '''
    Return True if ``url`` points at the root of the site, e.g. ``''`` or
    ``/``.

    An absolute URL only counts when its origin is ``hostname``, so the root
    of another locale's host (``https://fr.example.com/``) does not.

    :param str url:
    :param str hostname: (Optional) The site that relative URLs belong to.
    :rtype: bool
    '''
    parsed = URL(url)
    if parsed.path not in ('', '/') or parsed.query_string \
            or parsed.fragment:
        return False
    if not parsed.is_absolute():
        return True
    if not hostname:
        return False
    site = URL(hostname)
    return site.is_absolute() and parsed.origin() == site.origin()


async def _resolve_path(resolver, pattern, entity):
    '''
    Resolve a pattern, or return None if it can't be resolved for this entity.
    '''
    try:
        return await resolver.resolve(pattern, entity)
    except PatternResolutionError as exc:
        logger.debug('Skipping entity id=%s: %s', entity.get('id'), exc)
        return None


async def resolve_language_links(settings, resolver, page, content_type,
        default_url):
    '''
    Get the alternate-language URLs of a single page.

    The page's own locale is always the first link. Localizations without an
    applicable rule (or whose pattern can't be resolved) are left out.

    :param sitemapper.settings.SitemapSettings settings:
    :param resolver: A pattern resolver.
    :param dict page: The page entity.
    :param str content_type: The content type of the page.
    :param str default_url: The URL of the page itself.
    :returns: A list of links, or None if the page isn't localized at all
        (it has neither a locale nor localizations).
    :rtype: list[LanguageLink]
    '''
    localizations = page.get('localizations')
    if page.get('locale') is None and localizations is None:
        return None
    localizations = localizations or ()

    slots = [None] * len(localizations)

    async def resolve_translation(index, translation):
        locale = translation.get('locale') or UNDEFINED_LOCALE
        _, rule = settings.rule_for(content_type, locale)
        if rule is None:
            return
        path = await _resolve_path(resolver, rule.pattern, translation)
        if path is None:
            return
        hostname = settings.hostname_override(locale)
        slots[index] = LanguageLink(locale, f'{hostname}{path}')

    async with trio.open_nursery() as nursery:
        for index, translation in enumerate(localizations):
            nursery.start_soon(resolve_translation, index, translation)

    own_locale = page.get('locale') or UNDEFINED_LOCALE
    links = [LanguageLink(own_locale, default_url)]
    links.extend(link for link in slots if link is not None)
    return links


async def build_page_entry(settings, resolver, page, content_type):
    '''
    Build the sitemap entry for a single page.

    :param sitemapper.settings.SitemapSettings settings:
    :param resolver: A pattern resolver.
    :param dict page: The page entity.
    :param str content_type: The content type of the page.
    :returns: An entry, or None if no rule applies to the page.
    :rtype: SitemapEntry
    '''
    locale, rule = settings.rule_for(content_type, page.get('locale'))
    if rule is None:
        return None

    path = await _resolve_path(resolver, rule.pattern, page)
    if path is None:
        return None
    url = settings.hostname_override(page.get('locale')) + path

    entry = SitemapEntry(
        url=url,
        changefreq=rule.changefreq,
        priority=rule.priority,
        lastmod=page.get('updatedAt') if rule.include_lastmod else None,
        links=await resolve_language_links(settings, resolver, page,
            content_type, url),
    )

    if rule.sub_type_news:
        entry.news = NewsBlock(
            publication_name=rule.sub_type_news_name,
            publication_language=locale,
            title=page.get(rule.sub_type_news_title),
            publication_date=page.get('publishedAt'),
        )

    return entry


class EntryCollector:
    ''' Builds the entries of all configured content types. '''

    def __init__(self, settings, content_source, resolver, hostname=None):
        '''
        Constructor.

        :param sitemapper.settings.SitemapSettings settings:
        :param content_source: An object with an async
            ``fetch_pages(content_type, ids)`` method.
        :param resolver: An object with an async ``resolve(pattern, entity)``
            method.
        :param str hostname: (Optional) The default host of the site, used
            to recognize an absolute homepage URL.
        '''
        self._settings = settings
        self._content_source = content_source
        self._resolver = resolver
        self._hostname = hostname

    def __repr__(self):
        return '<EntryCollector>'

    async def collect(self, invalidation=None, known_entries=()):
        '''
        Collect entries.

        :param dict invalidation: (Optional) Maps content types to
            ``{'ids': ...}``. Only the listed content types are collected, and
            when ``ids`` is set only those entities are fetched. If omitted,
            every content type is collected.
        :param known_entries: Entries that will be emitted alongside the
            collected ones (i.e. from the cache). The homepage fallback is
            skipped if one of these is the root URL.
        :rtype: CollectedEntries
        '''
        results = dict()

        async def collect_type(content_type):
            ids = None
            if invalidation is not None:
                ids = (invalidation[content_type] or dict()).get('ids')
            results[content_type] = await self._collect_content_type(
                content_type, ids)

        async with trio.open_nursery() as nursery:
            for content_type in self._settings.content_types:
                if invalidation is not None and \
                        content_type not in invalidation:
                    continue
                nursery.start_soon(collect_type, content_type)

        collected = CollectedEntries()
        for content_type in self._settings.content_types:
            if content_type not in results:
                continue
            type_entries = dict()
            for entity_id, entry in results[content_type]:
                type_entries[entity_id] = entry
                collected.sitemap_entries.append(entry)
            collected.cache_entries[content_type] = type_entries
            logger.debug('%r Collected %d entries for %s', self,
                len(type_entries), content_type)

        for custom_entry in self._settings.custom_entries:
            collected.sitemap_entries.append(SitemapEntry(
                url=custom_entry.url,
                changefreq=custom_entry.changefreq,
                priority=custom_entry.priority,
            ))

        if self._settings.include_homepage:
            has_homepage = any(is_root_url(entry.url, self._hostname) for entry
                in itertools.chain(collected.sitemap_entries, known_entries))
            if not has_homepage:
                collected.sitemap_entries.append(SitemapEntry(
                    url=HOMEPAGE_URL,
                    changefreq='monthly',
                    priority=1.0,
                ))

        return collected

    async def _collect_content_type(self, content_type, ids):
        '''
        Fetch the pages of one content type and build their entries.

        :param str content_type:
        :param ids: Optional entity ids to restrict the fetch to.
        :returns: A list of ``(entity_id, entry)`` tuples in source order.
        :rtype: list
        '''
        pages = await self._content_source.fetch_pages(content_type, ids)
        slots = [None] * len(pages)

        async def build(index, page):
            slots[index] = await build_page_entry(self._settings,
                self._resolver, page, content_type)

        async with trio.open_nursery() as nursery:
            for index, page in enumerate(pages):
                nursery.start_soon(build, index, page)

        return [(str(page['id']), entry) for page, entry in zip(pages, slots)
            if entry is not None]
