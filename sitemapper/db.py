import logging
import re

from rethinkdb import RethinkDB
from rethinkdb.errors import ReqlNonExistenceError

from .entry import SitemapEntry


logger = logging.getLogger(__name__)
r = RethinkDB()


class SitemapDbError(Exception):
    ''' A write was rejected by the database. '''


def content_type_table(content_type):
    '''
    Get the name of the table that stores a content type, e.g.
    ``api::article.article`` is stored in ``api_article_article``.

    :param str content_type:
    :rtype: str
    '''
    return re.sub(r'\W+', '_', content_type).strip('_')


def cache_to_doc(cache):
    ''' Convert a cache snapshot to a database document. '''
    return {content_type: {str(entity_id): entry.to_doc()
                for entity_id, entry in type_cache.items()}
            for content_type, type_cache in cache.items()}


def doc_to_cache(doc):
    ''' Convert a database document to a cache snapshot. '''
    return {content_type: {entity_id: SitemapEntry.from_doc(entry_doc)
                for entity_id, entry_doc in (type_doc or dict()).items()}
            for content_type, type_doc in doc.items()}


class ContentDb:
    ''' Reads page entities for the sitemap generator. '''
    def __init__(self, db_pool):
        '''
        Constructor

        :param db_pool: A RethinkDB connection pool.
        '''
        self._db_pool = db_pool

    async def fetch_pages(self, content_type, ids=None):
        '''
        Get the pages of a content type.

        Each page's ``localizations`` field holds the ids of its siblings in
        other locales; they are replaced by the sibling documents themselves.

        :param str content_type:
        :param ids: (Optional) Only fetch the pages with these ids.
        :returns: A list of page entities.
        :rtype: list[dict]
        '''
        table = r.table(content_type_table(content_type))
        if ids is None:
            query = table
        elif not ids:
            return list()
        else:
            query = table.get_all(*ids)

        query = query.merge(lambda page: r.branch(
            page.has_fields('localizations'),
            {'localizations': table.get_all(r.args(page['localizations']))
                .without('localizations').coerce_to('array')},
            {}
        ))

        pages = list()
        async with self._db_pool.connection() as conn:
            cursor = await query.run(conn)
            async with cursor:
                async for page in cursor:
                    pages.append(page)
        logger.debug('Fetched %d pages from %s', len(pages), content_type)
        return pages


class SitemapDb:
    ''' Handles database queries for generated sitemaps and their cache. '''
    def __init__(self, db_pool):
        '''
        Constructor

        :param db_pool: A RethinkDB connection pool.
        '''
        self._db_pool = db_pool

    async def get_settings(self, name):
        '''
        Get the settings document of a sitemap.

        :param str name:
        :returns: A settings document (empty if none is stored).
        :rtype: dict
        '''
        async with self._db_pool.connection() as conn:
            doc = await r.table('sitemap_settings').get(name).run(conn)
        return doc or dict()

    async def store(self, document):
        '''
        Insert a sitemap document.

        :param dict document: Contains ``content``, ``name``, ``delta`` and
            ``type``.
        :returns: ID of the new document.
        :rtype: str
        '''
        doc = dict(document)
        doc['created_at'] = r.now()
        async with self._db_pool.connection() as conn:
            result = await r.table('sitemap').insert(doc).run(conn)
        return result['generated_keys'][0]

    async def delete(self, name):
        '''
        Delete every document of the named sitemap.

        :param str name:
        '''
        delete_query = (
            r.table('sitemap')
             .get_all(name, index='name')
             .delete()
        )
        async with self._db_pool.connection() as conn:
            result = await delete_query.run(conn)
        logger.debug('Deleted %d documents of sitemap %s', result['deleted'],
            name)

    async def get_sitemap(self, name, delta=0):
        '''
        Get one persisted sitemap document.

        :param str name:
        :param int delta: 0 for the top-level document, otherwise the
            sequence number of a child document.
        :returns: A database document, or None.
        :rtype: dict
        '''
        query = (
            r.table('sitemap')
             .get_all([name, delta], index='name_delta')
             .nth(0)
        )
        async with self._db_pool.connection() as conn:
            try:
                return await query.run(conn)
            except ReqlNonExistenceError:
                return None

    async def get_cache(self, name):
        '''
        Get the cache snapshot of a sitemap.

        :param str name:
        :returns: A cache snapshot, or None if nothing is cached.
        :rtype: dict
        '''
        async with self._db_pool.connection() as conn:
            doc = await r.table('sitemap_cache').get(name).run(conn)
        if doc is None:
            return None
        return doc_to_cache(doc['cache'])

    async def store_cache(self, cache, name, sitemap_id):
        '''
        Create the cache snapshot of a sitemap.

        Fails if the sitemap already has a cache, see ``overwrite_cache()``.

        :param dict cache: A cache snapshot.
        :param str name:
        :param str sitemap_id: The top-level document the cache belongs to.
        :raises SitemapDbError: If the cache could not be inserted.
        '''
        doc = {
            'id': name,
            'sitemap_id': sitemap_id,
            'cache': cache_to_doc(cache),
            'updated_at': r.now(),
        }
        async with self._db_pool.connection() as conn:
            result = await r.table('sitemap_cache').insert(doc).run(conn)
        if result['errors']:
            raise SitemapDbError('Cannot store cache of sitemap {}: {}'.format(
                name, result.get('first_error')))

    async def overwrite_cache(self, cache, name, sitemap_id):
        '''
        Replace the cache snapshot of a sitemap.

        :param dict cache: A cache snapshot.
        :param str name:
        :param str sitemap_id: The top-level document the cache belongs to.
        '''
        doc = {
            'id': name,
            'sitemap_id': sitemap_id,
            'cache': cache_to_doc(cache),
            'updated_at': r.now(),
        }
        async with self._db_pool.connection() as conn:
            await (
                r.table('sitemap_cache')
                 .insert(doc, conflict='replace')
                 .run(conn)
            )
