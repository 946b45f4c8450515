'''
Serialize sitemap entries to XML.

This module renders regular sitemaps (``<urlset>``) with language alternates
and news extensions, as well as sitemap index files (``<sitemapindex>``).
'''
from datetime import date, datetime, timezone
import logging
from xml.etree import ElementTree as ET

import dateutil.parser
from yarl import URL

logger = logging.getLogger(__name__)

# XML namespaces used in sitemaps
SITEMAP_NAMESPACES = {
    'xmlns': 'http://www.sitemaps.org/schemas/sitemap/0.9',
    'xmlns:news': 'http://www.google.com/schemas/sitemap-news/0.9',
    'xmlns:xhtml': 'http://www.w3.org/1999/xhtml',
    'xmlns:xsi': 'http://www.w3.org/2001/XMLSchema-instance',
}
SCHEMA_LOCATION = 'http://www.sitemaps.org/schemas/sitemap/0.9 ' \
    'http://www.sitemaps.org/schemas/sitemap/0.9/sitemap.xsd'
XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


def format_date(value):
    '''
    Format a date as a W3C datetime string.

    Naive datetimes are assumed to be UTC.

    :param value: A datetime, date, or a string that dateutil can parse.
    :returns: The formatted date, or None if ``value`` can't be parsed.
    :rtype: str
    '''
    if value is None:
        return None
    if isinstance(value, str):
        try:
            value = dateutil.parser.isoparse(value)
        except ValueError:
            logger.warning('Cannot parse date %r', value)
            return None
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    logger.warning('Cannot format date %r', value)
    return None


def format_priority(priority):
    '''
    Format a priority as a plain decimal without trailing zeros, e.g. ``1``,
    ``0.8`` or ``0.00001``. Exponent notation is not valid in a sitemap.

    :param float priority:
    :rtype: str
    '''
    return '{:f}'.format(priority).rstrip('0').rstrip('.') or '0'


def absolute_url(url, hostname):
    '''
    Resolve a root-relative URL against ``hostname``. Absolute URLs (and all
    URLs, when there is no hostname) are returned unchanged.

    :param str url:
    :param str hostname:
    :rtype: str
    '''
    if not hostname or URL(url).is_absolute():
        return url
    return str(URL(hostname).join(URL(url)))


def _header(xsl_url):
    header = XML_DECLARATION
    if xsl_url:
        header += '<?xml-stylesheet type="text/xsl" href="{}"?>'.format(
            xsl_url)
    return header


def _text(parent, tag, text):
    el = ET.SubElement(parent, tag)
    el.text = text
    return el


def _url_element(parent, entry, hostname):
    ''' Add a ``<url>`` element for one entry. '''
    url_el = ET.SubElement(parent, 'url')
    _text(url_el, 'loc', absolute_url(entry.url, hostname))
    lastmod = format_date(entry.lastmod)
    if lastmod is not None:
        _text(url_el, 'lastmod', lastmod)
    if entry.changefreq:
        _text(url_el, 'changefreq', entry.changefreq)
    if entry.priority is not None:
        _text(url_el, 'priority', format_priority(entry.priority))
    for link in entry.links or ():
        ET.SubElement(url_el, 'xhtml:link', {
            'rel': 'alternate',
            'hreflang': link.lang,
            'href': absolute_url(link.url, hostname),
        })
    if entry.news is not None:
        news = entry.news
        news_el = ET.SubElement(url_el, 'news:news')
        publication_el = ET.SubElement(news_el, 'news:publication')
        _text(publication_el, 'news:name', news.publication_name or '')
        _text(publication_el, 'news:language', news.publication_language or '')
        publication_date = format_date(news.publication_date)
        if publication_date is not None:
            _text(news_el, 'news:publication_date', publication_date)
        _text(news_el, 'news:title', news.title or '')


def render_urlset(entries, hostname=None, xsl_url=None):
    '''
    Render a regular sitemap.

    :param entries: An iterable of SitemapEntry.
    :param str hostname: (Optional) Root-relative URLs are resolved against
        this hostname.
    :param str xsl_url: (Optional) A stylesheet to reference.
    :returns: The XML document.
    :rtype: str
    '''
    attrs = dict(SITEMAP_NAMESPACES)
    attrs['xsi:schemaLocation'] = SCHEMA_LOCATION
    root = ET.Element('urlset', attrs)
    count = 0
    for entry in entries:
        _url_element(root, entry, hostname)
        count += 1
    logger.debug('Rendered sitemap with %d URLs', count)
    return _header(xsl_url) + ET.tostring(root, encoding='unicode')


def render_index(urls, lastmod=None, xsl_url=None):
    '''
    Render a sitemap index that references other sitemaps.

    :param urls: An iterable of child sitemap URLs.
    :param lastmod: (Optional) A last modification date for every child.
    :param str xsl_url: (Optional) A stylesheet to reference.
    :returns: The XML document.
    :rtype: str
    '''
    attrs = {
        'xmlns': SITEMAP_NAMESPACES['xmlns'],
        'xmlns:xsi': SITEMAP_NAMESPACES['xmlns:xsi'],
        'xsi:schemaLocation': SCHEMA_LOCATION,
    }
    root = ET.Element('sitemapindex', attrs)
    lastmod = format_date(lastmod)
    for url in urls:
        sitemap_el = ET.SubElement(root, 'sitemap')
        _text(sitemap_el, 'loc', url)
        if lastmod is not None:
            _text(sitemap_el, 'lastmod', lastmod)
    return _header(xsl_url) + ET.tostring(root, encoding='unicode')
