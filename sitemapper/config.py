import configparser
import pathlib

from yarl import URL

from .settings import _invalid


_root = pathlib.Path(__file__).resolve().parent.parent
INDEX_PATH = 'api/sitemap/index.xml'
XSL_PATH = 'xsl/sitemap.xsl'


def get_path(relpath):
    ''' Get absolute path to a project-relative path. '''
    return _root / relpath


def get_config():
    '''
    Read the application configuration from the standard configuration files.

    :rtype: ConfigParser
    '''
    config_dir = get_path("conf")
    config_files = [
        config_dir / "system.ini",
        config_dir / "local.ini",
    ]
    config = configparser.ConfigParser()
    config.optionxform = str
    config.read(config_files)
    return config


class SystemConfig:
    ''' Process-wide sitemap options, read-only during a generation run. '''

    def __init__(self, name='default', hostname='', server_url='', limit=45000,
            caching=True, auto_generate=True, xsl=True):
        '''
        Constructor.

        :param str name: The name that sitemap documents are stored under.
        :param str hostname: Prefix for root-relative entry URLs.
        :param str server_url: Public URL of the server that publishes the
            sitemap.
        :param int limit: Maximum entries per sitemap document.
        :param bool caching: Persist a cache snapshot after each run.
        :param bool auto_generate: Sitemaps are regenerated automatically.
        :param bool xsl: Reference the XSL stylesheet in generated documents.
        '''
        if limit < 1:
            _invalid('Sitemap limit must be ≥1')
        self.name = name
        self.hostname = hostname
        self.server_url = server_url
        self.limit = limit
        self.caching = caching
        self.auto_generate = auto_generate
        self.xsl = xsl

    @classmethod
    def from_config(cls, config):
        '''
        Create from the ``[sitemap]`` section of a config parser.

        :param ConfigParser config:
        :rtype: SystemConfig
        '''
        if not config.has_section('sitemap'):
            return cls()
        section = config['sitemap']
        try:
            return cls(
                name=section.get('name', 'default') or 'default',
                hostname=section.get('hostname', ''),
                server_url=section.get('server_url', ''),
                limit=section.getint('limit', 45000),
                caching=section.getboolean('caching', True),
                auto_generate=section.getboolean('auto_generate', True),
                xsl=section.getboolean('xsl', True),
            )
        except ValueError as exc:
            _invalid('Invalid value ({})'.format(exc), 'sitemap config')

    @property
    def base_url(self):
        ''' The URL that relative paths are resolved against. '''
        return URL(self.server_url or self.hostname or 'http://localhost:1337')

    @property
    def index_url(self):
        ''' The canonical URL of the published sitemap. '''
        return str(self.base_url.join(URL(INDEX_PATH)))

    @property
    def xsl_url(self):
        ''' The stylesheet reference, or None if XSL is disabled. '''
        return XSL_PATH if self.xsl else None
