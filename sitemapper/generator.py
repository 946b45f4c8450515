from dataclasses import dataclass
from datetime import datetime, timezone
import functools
import logging

import trio

from .cache import format_cache, merge
from .collector import EntryCollector
from .sitemap import render_index, render_urlset
from .splitter import plan_sitemap


logger = logging.getLogger(__name__)


class SitemapGenerationError(Exception):
    ''' A sitemap generation run failed. The cause is logged, not attached. '''


class RunState:
    '''
    Lists the states of a generation run.

    Unlike an enum, the values are also strings, because they show up in logs
    and strings are easier to read than integers.
    '''
    IDLE = 'idle'
    COLLECTING = 'collecting'
    MERGING = 'merging'
    EMITTING = 'emitting'
    PERSISTING = 'persisting'
    DONE = 'done'
    FAILED = 'failed'


class DocumentType:
    ''' Type tags for persisted sitemap documents. '''
    INDEX = 'index'
    LEAF = 'default_hreflang'


@dataclass
class GenerationResult:
    ''' Summary of a successful generation run. '''
    sitemap_id: str
    entry_count: int
    document_count: int
    is_index: bool


class SitemapGenerator:
    ''' Runs the collect → merge → emit → persist pipeline. '''

    def __init__(self, system_config, settings, content_source, resolver,
            sitemap_db):
        '''
        Constructor.

        :param sitemapper.config.SystemConfig system_config:
        :param sitemapper.settings.SitemapSettings settings:
        :param content_source: An object with an async
            ``fetch_pages(content_type, ids)`` method.
        :param resolver: An object with an async ``resolve(pattern, entity)``
            method.
        :param sitemapper.db.SitemapDb sitemap_db: Persistence layer.
        '''
        self._config = system_config
        self._collector = EntryCollector(settings, content_source, resolver,
            system_config.hostname)
        self._db = sitemap_db
        self.state = RunState.IDLE

    def __repr__(self):
        return '<SitemapGenerator name={}>'.format(self._config.name)

    async def run(self, invalidation=None):
        '''
        Load the previous cache (if caching is enabled) and generate.

        Without a cache there is nothing to take untouched content types
        from, so the invalidation request is dropped and every content type
        is regenerated.

        :param dict invalidation: (Optional) The invalidation request.
        :rtype: GenerationResult
        '''
        cache = None
        if self._config.caching:
            try:
                cache = await self._db.get_cache(self._config.name)
            except Exception:
                logger.exception('%r Cannot load sitemap cache', self)
                self._set_state(RunState.FAILED)
                raise SitemapGenerationError(
                    'Sitemap generation failed.') from None
        if cache is None and invalidation is not None:
            # Untouched content types can only come from a cache.
            logger.info('%r No sitemap cache available, regenerating every '
                'content type', self)
            invalidation = None
        return await self.generate(cache, invalidation)

    async def generate(self, cache=None, invalidation=None):
        '''
        Generate and persist the sitemap.

        :param dict cache: (Optional) The previous cache snapshot.
        :param dict invalidation: (Optional) Maps content types to
            ``{'ids': ...}``. If omitted, every content type is regenerated.
        :returns: A summary of the run, or None if there were no entries.
        :rtype: GenerationResult
        :raises SitemapGenerationError: If a collaborator failed.
        '''
        self._set_state(RunState.COLLECTING)
        try:
            collected = await self._collector.collect(invalidation,
                known_entries=format_cache(cache, invalidation))
        except Exception:
            self._fail('Something went wrong while collecting sitemap entries')

        self._set_state(RunState.MERGING)
        merged = merge(cache, collected, invalidation)
        if not merged.entries:
            logger.info('%r No sitemap XML was generated because there were 0 '
                'URLs configured.', self)
            self._set_state(RunState.DONE)
            return None

        self._set_state(RunState.EMITTING)
        plan = plan_sitemap(merged.entries, self._config.limit,
            self._config.index_url)
        try:
            documents = await self._render(plan)
        except Exception:
            self._fail('Something went wrong while rendering the sitemap XML')

        self._set_state(RunState.PERSISTING)
        sitemap_id = await self._persist(documents)

        if self._config.caching and self._config.auto_generate:
            try:
                if cache is None:
                    await self._db.store_cache(merged.cache, self._config.name,
                        sitemap_id)
                else:
                    await self._db.overwrite_cache(merged.cache,
                        self._config.name, sitemap_id)
            except Exception:
                self._fail('Something went wrong while writing the sitemap '
                    'cache')

        self._set_state(RunState.DONE)
        logger.info('%r The sitemap XML has been generated (%d URLs in %d '
            'documents). It can be accessed on %s', self, len(merged.entries),
            len(documents), self._config.index_url)
        return GenerationResult(sitemap_id, len(merged.entries),
            len(documents), plan.is_index)

    async def _render(self, plan):
        '''
        Render every document of a plan.

        Children come first, in order of their delta, followed by the index.
        Rendering runs in a worker thread because large documents take a
        while to serialize.

        :param plan: A plan from ``plan_sitemap()``.
        :returns: A list of documents ready to be stored.
        :rtype: list[dict]
        '''
        name = self._config.name
        hostname = self._config.hostname
        xsl_url = self._config.xsl_url

        if not plan.is_index:
            content = await trio.to_thread.run_sync(functools.partial(
                render_urlset, plan.entries, hostname=hostname,
                xsl_url=xsl_url))
            return [self._document(content, name, 0, DocumentType.LEAF)]

        documents = list()
        child_urls = list()
        for child in plan.children():
            content = await trio.to_thread.run_sync(functools.partial(
                render_urlset, child.entries, hostname=hostname,
                xsl_url=xsl_url))
            documents.append(self._document(content, name, child.delta,
                DocumentType.LEAF))
            child_urls.append(child.url)
            logger.debug('%r Rendered child %d (%d URLs)', self, child.delta,
                len(child.entries))

        content = render_index(child_urls,
            lastmod=datetime.now(timezone.utc), xsl_url=xsl_url)
        documents.append(self._document(content, name, 0, DocumentType.INDEX))
        return documents

    async def _persist(self, documents):
        '''
        Replace the persisted document set with ``documents``.

        If any write fails, the partially written set is deleted again so
        that it never becomes visible as the current sitemap.

        :param list[dict] documents: The last document is the top-level one.
        :returns: The identifier of the top-level document.
        :rtype: str
        '''
        name = self._config.name
        try:
            await self._db.delete(name)
            for document in documents:
                sitemap_id = await self._db.store(document)
        except Exception:
            logger.exception('%r Something went wrong while trying to write '
                'the sitemap XML to the database', self)
            try:
                await self._db.delete(name)
            except Exception:
                logger.exception('%r Cannot remove partially written sitemap',
                    self)
            self._set_state(RunState.FAILED)
            raise SitemapGenerationError('Sitemap generation failed.') from None
        return sitemap_id

    def _document(self, content, name, delta, type_):
        return {
            'content': content,
            'name': name,
            'delta': delta,
            'type': type_,
        }

    def _fail(self, message):
        '''
        Log the exception being handled and raise a generic error.

        :param str message: Logged along with the traceback.
        :raises SitemapGenerationError:
        '''
        logger.exception('%r %s', self, message)
        self._set_state(RunState.FAILED)
        raise SitemapGenerationError('Sitemap generation failed.') from None

    def _set_state(self, state):
        logger.debug('%r %s → %s', self, self.state, state)
        self.state = state
