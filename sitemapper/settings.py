import logging

from .pattern import validate_pattern


logger = logging.getLogger(__name__)
CHANGEFREQS = ('always', 'hourly', 'daily', 'weekly', 'monthly', 'yearly',
    'never')
DEFAULT_CHANGEFREQ = 'monthly'
DEFAULT_PRIORITY = 0.5
UNDEFINED_LOCALE = 'und'


class SettingsValidationError(Exception):
    ''' Custom error for settings validation. '''


def _invalid(message, location=None):
    ''' A helper for validating settings. '''
    if location is None:
        raise SettingsValidationError(f'{message}.')
    raise SettingsValidationError(f'{message} in {location}.')


def parse_priority(value, location=None):
    '''
    Parse a priority value into a float.

    Blank or unparseable values fall back to the default priority. Numbers
    outside of the 0.0-1.0 range are rejected.

    :param value: A number or a string.
    :param str location: Used in error messages.
    :rtype: float
    '''
    try:
        priority = float(value)
    except (TypeError, ValueError):
        return DEFAULT_PRIORITY
    if priority != priority:
        return DEFAULT_PRIORITY
    if not 0.0 <= priority <= 1.0:
        _invalid('Priority must be between 0.0 and 1.0', location)
    return priority


def parse_changefreq(value, location=None):
    '''
    Parse a changefreq value.

    :param str value:
    :param str location: Used in error messages.
    :rtype: str
    '''
    if not value:
        return DEFAULT_CHANGEFREQ
    if value not in CHANGEFREQS:
        _invalid('Invalid changefreq "{}"'.format(value), location)
    return value


class LocaleRule:
    ''' Controls the URL pattern and entry metadata for one locale of one
    content type. '''

    def __init__(self, doc, location=None):
        '''
        Initialize from a settings document.

        :param dict doc: A settings document.
        :param str location: Used in error messages.
        '''
        self.pattern = doc.get('pattern')
        error = validate_pattern(self.pattern)
        if error:
            _invalid(error, location)
        self.changefreq = parse_changefreq(doc.get('changefreq'), location)
        self.priority = parse_priority(doc.get('priority'), location)
        self.include_lastmod = doc.get('includeLastmod', True) is not False
        self.sub_type_news = doc.get('subTypeNews', False) is True
        self.sub_type_news_name = doc.get('subTypeNewsName')
        self.sub_type_news_title = doc.get('subTypeNewsTitle')
        if self.sub_type_news and not self.sub_type_news_title:
            _invalid('News sub-type requires a title field', location)

    def __repr__(self):
        return '<LocaleRule pattern={!r}>'.format(self.pattern)


class CustomEntry:
    ''' A static URL that is always added to the sitemap. '''

    def __init__(self, url, doc):
        '''
        Initialize from a settings document.

        :param str url: The literal URL.
        :param dict doc: A settings document.
        '''
        location = 'custom entry {}'.format(url)
        if not url or not url.strip():
            _invalid('Custom entry URL cannot be blank')
        self.url = url
        self.changefreq = parse_changefreq(doc.get('changefreq'), location)
        self.priority = parse_priority(doc.get('priority'), location)


class SitemapSettings:
    '''
    The per-run sitemap settings: content type rules, hostname overrides,
    custom entries and the homepage flag.

    Settings are validated once here, so the rest of the generator can trust
    every rule it is handed.
    '''

    def __init__(self, doc):
        '''
        Initialize settings from a settings document.

        :param dict doc: A settings document.
        '''
        self.content_types = dict()
        for content_type, type_doc in doc.get('contentTypes', dict()).items():
            languages = (type_doc or dict()).get('languages', dict())
            rules = dict()
            for locale, rule_doc in languages.items():
                location = '{} ({})'.format(content_type, locale)
                rules[locale] = LocaleRule(rule_doc, location)
            self.content_types[content_type] = rules

        self.hostname_overrides = dict()
        for locale, hostname in doc.get('hostname_overrides', dict()).items():
            self.hostname_overrides[locale] = (hostname or '').rstrip('/')

        self.custom_entries = list()
        for url, entry_doc in doc.get('customEntries', dict()).items():
            self.custom_entries.append(CustomEntry(url, entry_doc or dict()))

        self.include_homepage = bool(doc.get('includeHomepage', False))

    def __repr__(self):
        return '<SitemapSettings content_types={}>'.format(
            len(self.content_types))

    def rule_for(self, content_type, locale):
        '''
        Find the rule that applies to a locale of a content type.

        Falls back to the ``und`` rule when the locale has no rule of its own.

        :param str content_type:
        :param str locale:
        :returns: A tuple of the effective locale and its rule, or ``(None,
            None)`` if no rule applies.
        :rtype: tuple
        '''
        rules = self.content_types.get(content_type, dict())
        locale = locale or UNDEFINED_LOCALE
        if locale in rules:
            return locale, rules[locale]
        if UNDEFINED_LOCALE in rules:
            return UNDEFINED_LOCALE, rules[UNDEFINED_LOCALE]
        return None, None

    def hostname_override(self, locale):
        '''
        Get the hostname prefix for a locale (empty string if none).

        :param str locale:
        :rtype: str
        '''
        return self.hostname_overrides.get(locale, '')
