'''
As an application, this Sitemapper package isn't intended to be published to
PyPI. This setup.py exists so that we can easily add Sitemapper to the Python
path and install its dependencies.
'''
from setuptools import setup, find_packages
from pathlib import Path

here = Path(__file__).parent

# Get version
version = {}
with (here / "sitemapper" / "version.py").open() as f:
    exec(f.read(), version)

setup(
    name='sitemapper',
    version=version['__version__'],
    description='Multilingual XML sitemap generator written on Trio async '
        'framework',
    python_requires=">=3.8",
    keywords='sitemap hreflang xml',
    packages=find_packages(exclude=['tests']),
    install_requires=[
        'python-dateutil',
        'rethinkdb>=2.4',
        'trio>=0.22',
        'yarl',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-trio',
        ],
    },
    entry_points={
        'console_scripts': [
            'sitemapper=sitemapper.__main__:main',
            'sitemapper-init=sitemapper.container_init:main',
        ],
    },
)
