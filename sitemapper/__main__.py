import argparse
import logging
import sys

from .bootstrap import Bootstrap
from .config import get_config


def configure_logging(log_level, error_log):
    ''' Set default format and output stream for logging. '''
    log_format = '%(asctime)s [%(name)s] %(levelname)s: %(message)s'
    log_date_format = '%Y-%m-%d %H:%M:%S'
    log_formatter = logging.Formatter(log_format, log_date_format)
    log_level = getattr(logging, log_level.upper())
    log_handler = logging.StreamHandler(sys.stderr)
    log_handler.setFormatter(log_formatter)
    log_handler.setLevel(log_level)
    logger = logging.getLogger()
    logger.addHandler(log_handler)
    logger.setLevel(log_level)

    if error_log is not None:
        exc_handler = logging.FileHandler(error_log)
        exc_handler.setFormatter(log_formatter)
        exc_handler.setLevel(logging.ERROR)
        logger.addHandler(exc_handler)


def parse_invalidation(values):
    '''
    Convert ``--invalidate`` arguments into an invalidation request.

    Each value is either a content type, which invalidates all of its pages,
    or ``CONTENT_TYPE=ID,ID,...`` to invalidate specific pages.

    :param list[str] values: Argument values, or None.
    :returns: An invalidation request, or None for a full run.
    :rtype: dict
    '''
    if not values:
        return None
    invalidation = dict()
    for value in values:
        content_type, sep, ids = value.partition('=')
        if not content_type:
            raise ValueError('Invalid --invalidate value: {!r}'.format(value))
        if not sep:
            invalidation[content_type] = {'ids': None}
            continue
        current = invalidation.setdefault(content_type, {'ids': set()})
        if current['ids'] is None:
            continue
        current['ids'].update(id_ for id_ in ids.split(',') if id_)
    return invalidation


def get_args(argv=None):
    ''' Parse command line arguments. '''
    arg_parser = argparse.ArgumentParser(description='Sitemapper')
    arg_parser.add_argument(
        '--log-level',
        default='warning',
        metavar='LEVEL',
        choices=['debug', 'info', 'warning', 'error', 'critical'],
        help='Set logging verbosity (default: warning)'
    )
    arg_parser.add_argument(
        '--error-log',
        help='Copy error logs to the specified file.'
    )
    arg_parser.add_argument(
        '--invalidate',
        action='append',
        metavar='TYPE[=ID,...]',
        help='Only regenerate this content type (optionally only the given '
             'ids) and take everything else from the cache. Without a cache,'
             ' everything is regenerated. May be repeated.'
    )
    args = arg_parser.parse_args(argv)
    try:
        args.invalidation = parse_invalidation(args.invalidate)
    except ValueError as ve:
        arg_parser.error(str(ve))
    return args


def main():
    ''' Run one sitemap generation. '''
    args = get_args()
    configure_logging(args.log_level, args.error_log)
    config = get_config()
    bootstrap = Bootstrap(config, args)
    if not bootstrap.run():
        sys.exit(1)


if __name__ == '__main__':
    main()
