'''
Resolve URL patterns such as ``/blog/[category.slug]/[slug]`` against a page
entity.

The generator only relies on the ``resolve(pattern, entity)`` contract, so any
object with a compatible coroutine can be used in place of
:class:`PatternResolver`.
'''
import logging
import re


logger = logging.getLogger(__name__)
FIELD_RE = re.compile(r'\[([\w.-]+)\]')


class PatternResolutionError(Exception):
    ''' A pattern cannot be resolved for a given entity. '''


def validate_pattern(pattern):
    '''
    Check that a pattern is usable.

    :param str pattern:
    :returns: An error message, or None if the pattern is valid.
    :rtype: str
    '''
    if not pattern or not pattern.strip():
        return 'Pattern cannot be blank'
    if not pattern.startswith('/'):
        return 'Pattern must start with a forward slash'
    if pattern.count('[') != pattern.count(']'):
        return 'Pattern has unbalanced brackets'
    stripped = FIELD_RE.sub('', pattern)
    if '[' in stripped or ']' in stripped:
        return 'Pattern contains an invalid field reference'
    return None


def _lookup(entity, path):
    ''' Follow a dotted ``path`` through nested mappings. '''
    value = entity
    for part in path.split('.'):
        if isinstance(value, (list, tuple)):
            value = value[0] if value else None
        if value is None:
            return None
        try:
            value = value[part]
        except (KeyError, TypeError):
            return None
    return value


class PatternResolver:
    ''' Substitutes ``[field]`` tokens with entity attributes. '''

    async def resolve(self, pattern, entity):
        '''
        Resolve ``pattern`` for ``entity``.

        :param str pattern: A URL pattern.
        :param dict entity: A page entity.
        :returns: A root-relative path.
        :rtype: str
        :raises PatternResolutionError: If a referenced field is missing.
        '''
        def replace(match):
            value = _lookup(entity, match.group(1))
            if value is None or value == '':
                raise PatternResolutionError('Field "{}" is empty for entity '
                    'id={}'.format(match.group(1), entity.get('id')))
            return str(value)

        path = FIELD_RE.sub(replace, pattern)
        path = re.sub(r'/{2,}', '/', path)
        return '/' + path.lstrip('/')
