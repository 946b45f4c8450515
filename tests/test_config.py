import configparser

import pytest

import sitemapper.config
from sitemapper.config import SystemConfig
from sitemapper.settings import SettingsValidationError


LOCAL_INI = '''[database]
host = sitemapper-host
db = sitemapper-db
user = sitemapper-app
password = normalpass
super_user = sitemapper-admin
super_password = superpass

[sitemap]
hostname = https://www.example.com
limit = 100'''


SYSTEM_INI = '''[database]
host =
port = 28015
db =
user =
password =
super_user =
super_password =

[sitemap]
name = default
hostname =
server_url = http://localhost:1337
limit = 45000
caching = true
auto_generate = true
xsl = true'''


def test_get_config(tmp_path, monkeypatch):
    # Point the module's private _root variable at our temp directory.
    monkeypatch.setattr(sitemapper.config, '_root', tmp_path)

    # Create temp configuration files.
    config_dir = tmp_path / 'conf'
    config_dir.mkdir()

    with (config_dir / 'local.ini').open('w') as f:
        f.write(LOCAL_INI)

    with (config_dir / 'system.ini').open('w') as f:
        f.write(SYSTEM_INI)

    # Read configuration.
    config = sitemapper.config.get_config()
    db = config['database']
    assert db['host'] == 'sitemapper-host'
    assert db['port'] == '28015'
    assert db['db'] == 'sitemapper-db'

    system_config = SystemConfig.from_config(config)
    assert system_config.name == 'default'
    assert system_config.hostname == 'https://www.example.com'
    assert system_config.limit == 100
    assert system_config.caching
    assert system_config.auto_generate
    assert system_config.xsl_url == 'xsl/sitemap.xsl'
    assert system_config.index_url == \
        'http://localhost:1337/api/sitemap/index.xml'


def test_system_config_without_section():
    config = configparser.ConfigParser()
    system_config = SystemConfig.from_config(config)
    assert system_config.name == 'default'
    assert system_config.limit == 45000
    assert system_config.index_url == \
        'http://localhost:1337/api/sitemap/index.xml'


def test_system_config_invalid_limit():
    config = configparser.ConfigParser()
    config.read_string('[sitemap]\nlimit = many\n')
    with pytest.raises(SettingsValidationError):
        SystemConfig.from_config(config)
    with pytest.raises(SettingsValidationError):
        SystemConfig(limit=0)


def test_index_url_falls_back_to_hostname():
    system_config = SystemConfig(hostname='https://www.example.com',
        xsl=False)
    assert system_config.index_url == \
        'https://www.example.com/api/sitemap/index.xml'
    assert system_config.xsl_url is None
