import logging

from rethinkdb import RethinkDB
from rethinkdb.trio_net.net_trio import Connection as RethinkDBTrioConnection
import trio

from .config import SystemConfig
from .db import ContentDb, SitemapDb
from .generator import SitemapGenerationError, SitemapGenerator
from .pattern import PatternResolver
from .settings import SettingsValidationError, SitemapSettings


logger = logging.getLogger(__name__)


class Bootstrap:
    ''' Main class for bootstrapping a generation run. '''
    def __init__(self, config, args):
        '''
        Constructor.

        :param config: Output of config parser.
        :param args: Output of argparse.
        '''
        self._args = args
        self._config = config
        self.result = None
        self.failed = False

    def run(self):
        '''
        Run the main task on the event loop.

        :returns: True if the run succeeded.
        :rtype: bool
        '''
        logger.info('Sitemapper is starting...')
        try:
            trio.run(self._main)
        except KeyboardInterrupt:
            logger.warning('Quitting due to KeyboardInterrupt')
            return False
        if self.failed:
            logger.error('Sitemap generation failed (see log for details)')
        logger.info('Sitemapper has stopped.')
        return not self.failed

    def _db_pool(self, nursery):
        '''
        Create a database connection pool.

        :param nursery: A Trio nursery to spawn database connections in.
        :returns: A RethinkDB connection pool.
        '''
        r = RethinkDB()
        r.set_loop_type('trio')
        db_config = self._config['database']
        return r.ConnectionPool(
            connection_type=RethinkDBTrioConnection,
            host=db_config['host'],
            port=db_config['port'],
            db=db_config['db'],
            user=db_config['user'],
            password=db_config['password'],
            nursery=nursery
        )

    async def _main(self):
        '''
        The main task: load settings and run one generation.
        '''
        system_config = SystemConfig.from_config(self._config)
        async with trio.open_nursery() as nursery:
            db_pool = self._db_pool(nursery)
            sitemap_db = SitemapDb(db_pool)
            content_db = ContentDb(db_pool)

            logger.info('Loading settings for sitemap "%s"...',
                system_config.name)
            settings_doc = await sitemap_db.get_settings(system_config.name)
            try:
                settings = SitemapSettings(settings_doc)
                generator = SitemapGenerator(system_config, settings,
                    content_db, PatternResolver(), sitemap_db)
                self.result = await generator.run(self._args.invalidation)
            except SettingsValidationError as sve:
                logger.error('Invalid sitemap settings: %s', sve)
                self.failed = True
            except SitemapGenerationError:
                self.failed = True
            # The connection pool runs until its nursery is cancelled.
            nursery.cancel_scope.cancel()
