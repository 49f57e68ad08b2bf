#!/usr/bin/env python3
from setuptools import find_packages, setup

setup(
    name='lsprename',
    version='0.1.0',
    description='A language server for renaming symbols',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.10',
    extras_require={
        'test': ['pytest'],
    },
    entry_points={
        'console_scripts': [
            'lsprename=lsprename.main:main',
        ],
    },
)
