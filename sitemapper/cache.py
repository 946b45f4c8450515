'''
Combine a persisted cache snapshot with freshly collected entries.

A cache snapshot maps content type -> entity id -> SitemapEntry. Entity ids
are always strings, since that is how they are keyed in the database.
'''
from dataclasses import dataclass
import logging
from typing import Dict, List

from .entry import SitemapEntry


logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    ''' The entries to write into the sitemap and the cache to persist. '''
    entries: List[SitemapEntry]
    cache: Dict[str, Dict[str, SitemapEntry]]


def _invalidated_ids(invalidation, content_type):
    '''
    Get the invalidated ids of a content type as strings, or None if the whole
    content type is invalidated.
    '''
    ids = (invalidation.get(content_type) or dict()).get('ids')
    if ids is None:
        return None
    return {str(id_) for id_ in ids}


def format_cache(cache, invalidation):
    '''
    Get the cached entries that are still valid after an invalidation.

    A full run (no invalidation request) regenerates every content type, so
    nothing is taken from the cache.

    :param dict cache: The previous cache snapshot, or None.
    :param dict invalidation: The invalidation request, or None.
    :rtype: list[SitemapEntry]
    '''
    if not cache or invalidation is None:
        return list()

    entries = list()
    for content_type, type_cache in cache.items():
        if content_type not in invalidation:
            entries.extend(type_cache.values())
            continue
        ids = _invalidated_ids(invalidation, content_type)
        if ids is not None:
            entries.extend(entry for entity_id, entry in type_cache.items()
                if entity_id not in ids)
    return entries


def merge_cache(cache, cache_entries, invalidation=None):
    '''
    Return a new cache snapshot with freshly collected entries.

    Each collected content type replaces its sub-map in ``cache``. When the
    invalidation request names specific ids for a content type, only those
    ids are replaced (or dropped, if the source no longer returned them).
    This differs from a wholesale per-type overwrite, which would lose the
    cached pages outside the id filter. Neither argument is modified.

    :param dict cache: The previous cache snapshot, or None.
    :param dict cache_entries: Freshly collected entries by content type.
    :param dict invalidation: The invalidation request, or None.
    :rtype: dict
    '''
    if not cache or invalidation is None:
        return {content_type: dict(type_entries)
            for content_type, type_entries in cache_entries.items()}

    merged = {content_type: dict(type_cache)
        for content_type, type_cache in cache.items()}
    for content_type, type_entries in cache_entries.items():
        ids = _invalidated_ids(invalidation, content_type)
        if ids is None:
            merged[content_type] = dict(type_entries)
        else:
            type_cache = {entity_id: entry for entity_id, entry
                in merged.get(content_type, dict()).items()
                if entity_id not in ids}
            type_cache.update(type_entries)
            merged[content_type] = type_cache
    return merged


def merge(cache, collected, invalidation=None):
    '''
    Merge a previous cache snapshot with the result of a collection pass.

    Freshly collected entries come first, followed by cached entries of the
    content types that were not regenerated. A cached entry whose URL was
    also collected in this run is dropped, so each URL appears once.

    :param dict cache: The previous cache snapshot, or None.
    :param sitemapper.collector.CollectedEntries collected:
    :param dict invalidation: The invalidation request, or None.
    :rtype: MergeResult
    '''
    entries = list(collected.sitemap_entries)
    seen = {entry.url for entry in entries}
    for entry in format_cache(cache, invalidation):
        if entry.url in seen:
            logger.debug('Dropping cached duplicate of %s', entry.url)
            continue
        seen.add(entry.url)
        entries.append(entry)
    new_cache = merge_cache(cache, collected.cache_entries, invalidation)
    return MergeResult(entries, new_cache)
