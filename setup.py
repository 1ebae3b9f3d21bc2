#!/usr/bin/env python
# -*- coding: utf-8 -*-

from setuptools import setup, find_packages
from os.path import join, dirname

exec(open(join(dirname(__file__), 'inphms_rpc', 'release.py'), 'rb').read())
lib_name = 'inphms_rpc'

setup(
    name='inphms-rpc',
    version=version,
    description=description,
    long_description=long_desc,
    url=url,
    author=author,
    author_email=author_email,
    classifiers=[c for c in classifiers.split('\n') if c],
    license=license,
    scripts=['setup/inphms-rpc'],
    packages=find_packages(include=['inphms_rpc', 'inphms_rpc.*']),
    package_dir={'%s' % lib_name: 'inphms_rpc'},
    include_package_data=True,
    install_requires=[
        'decorator',
        'requests',
        'pytz',
    ],
    python_requires='>=3.10',
    extras_require={
        'test': [
            'pytest',
            'freezegun',
            'requests-mock',
        ],
    },
    tests_require=[
        'pytest',
        'freezegun',
        'requests-mock',
    ],
)
