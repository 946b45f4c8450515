import pytest

from sitemapper.settings import (
    CustomEntry,
    LocaleRule,
    SettingsValidationError,
    SitemapSettings,
)


def make_settings_doc():
    return {
        'contentTypes': {
            'api::article.article': {
                'languages': {
                    'en': {
                        'pattern': '/articles/[slug]',
                        'changefreq': 'weekly',
                        'priority': '0.8',
                    },
                    'und': {
                        'pattern': '/[locale]/articles/[slug]',
                    },
                },
            },
            'api::page.page': {
                'languages': {
                    'nl': {
                        'pattern': '/pagina/[slug]',
                        'includeLastmod': False,
                    },
                },
            },
        },
        'hostname_overrides': {
            'nl': 'https://example.nl//',
        },
        'customEntries': {
            '/contact': {'changefreq': 'yearly', 'priority': '0.3'},
        },
        'includeHomepage': True,
    }


def test_settings_from_doc():
    settings = SitemapSettings(make_settings_doc())
    assert repr(settings) == '<SitemapSettings content_types=2>'
    assert settings.include_homepage
    assert settings.hostname_override('nl') == 'https://example.nl'
    assert settings.hostname_override('en') == ''
    custom = settings.custom_entries[0]
    assert custom.url == '/contact'
    assert custom.changefreq == 'yearly'
    assert custom.priority == 0.3


def test_rule_for_own_locale():
    settings = SitemapSettings(make_settings_doc())
    locale, rule = settings.rule_for('api::article.article', 'en')
    assert locale == 'en'
    assert rule.pattern == '/articles/[slug]'
    assert rule.changefreq == 'weekly'
    assert rule.priority == 0.8


def test_rule_for_falls_back_to_und():
    settings = SitemapSettings(make_settings_doc())
    locale, rule = settings.rule_for('api::article.article', 'fr')
    assert locale == 'und'
    assert rule.pattern == '/[locale]/articles/[slug]'
    locale, rule = settings.rule_for('api::article.article', None)
    assert locale == 'und'


def test_rule_for_no_rule():
    settings = SitemapSettings(make_settings_doc())
    assert settings.rule_for('api::page.page', 'en') == (None, None)
    assert settings.rule_for('api::unknown.unknown', 'en') == (None, None)


def test_rule_defaults():
    rule = LocaleRule({'pattern': '/[slug]'})
    assert rule.changefreq == 'monthly'
    assert rule.priority == 0.5
    assert rule.include_lastmod is True
    assert rule.sub_type_news is False


def test_rule_include_lastmod_only_disabled_by_false():
    assert LocaleRule({'pattern': '/', 'includeLastmod': None}) \
        .include_lastmod is True
    assert LocaleRule({'pattern': '/', 'includeLastmod': False}) \
        .include_lastmod is False


def test_rule_unparseable_priority_uses_default():
    assert LocaleRule({'pattern': '/', 'priority': ''}).priority == 0.5
    assert LocaleRule({'pattern': '/', 'priority': 'high'}).priority == 0.5


def test_rule_priority_out_of_range():
    with pytest.raises(SettingsValidationError):
        LocaleRule({'pattern': '/', 'priority': '1.5'}, 'page (en)')


def test_rule_invalid_changefreq():
    with pytest.raises(SettingsValidationError) as exc_info:
        LocaleRule({'pattern': '/', 'changefreq': 'sometimes'}, 'page (en)')
    assert str(exc_info.value) == 'Invalid changefreq "sometimes" in page ' \
        '(en).'


def test_rule_blank_pattern():
    with pytest.raises(SettingsValidationError) as exc_info:
        LocaleRule({'pattern': ''}, 'page (en)')
    assert str(exc_info.value) == 'Pattern cannot be blank in page (en).'


def test_rule_news_requires_title():
    with pytest.raises(SettingsValidationError):
        LocaleRule({'pattern': '/', 'subTypeNews': True,
            'subTypeNewsName': 'The Daily'})
    rule = LocaleRule({'pattern': '/', 'subTypeNews': True,
        'subTypeNewsName': 'The Daily', 'subTypeNewsTitle': 'title'})
    assert rule.sub_type_news
    assert rule.sub_type_news_name == 'The Daily'
    assert rule.sub_type_news_title == 'title'


def test_custom_entry_blank_url():
    with pytest.raises(SettingsValidationError):
        CustomEntry(' ', {})


def test_empty_settings():
    settings = SitemapSettings({})
    assert settings.content_types == {}
    assert settings.custom_entries == []
    assert not settings.include_homepage
