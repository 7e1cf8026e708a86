#!/usr/bin/env python
# -*- encoding: utf-8 -*-

from setuptools import setup, find_packages

# setuptools only specifies abstract requirements
base_requirements = [
    'numpy',
    'scipy',
    'pandas',
    'click',
    'tabulate',
    'jinja2',
    'multiprocessing_logging',
    'eliot',
]

# extras requirements list
test_requirements = [
    'pytest',
]

setup(
    name='cres',
    version='0.1.0',
    description="Cell resampling of weighted Monte Carlo event samples",
    license="MIT",
    classifiers=[
        "Topic :: Scientific/Engineering :: Physics",
        "License :: OSI Approved :: MIT License",
        'Programming Language :: Python :: 3'
    ],

    # package
    packages=find_packages(where='src'),

    package_dir={'' : 'src'},

    python_requires='>=3.8',

    entry_points={
        'console_scripts' : [
            'cres=cres.cli:cli',
        ],
    },

    install_requires=base_requirements,

    extras_require={
        'test' : test_requirements,
    }
)
