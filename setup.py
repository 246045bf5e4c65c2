# setup.py
from setuptools import setup, find_packages

setup(
    name='consistent-suspense',
    version='0.1.0',
    description='Deterministic ids for suspended subtrees and a streaming HTML chunk analyzer for server rendering.',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',

    # Finds `consistent_suspense` and `consistent_suspense_cli`
    packages=find_packages(exclude=['tests', 'tests.*']),

    install_requires=[
        'PyYAML',
        'typer[all]',
    ],
    extras_require={
        'test': ['pytest'],
    },

    # Creates an executable script named `consistent-suspense` that calls the
    # `app` object inside `consistent_suspense_cli.main`.
    entry_points={
        'console_scripts': [
            'consistent-suspense = consistent_suspense_cli.main:app',
        ],
    },

    classifiers=[
        'Programming Language :: Python :: 3',
        'License :: OSI Approved :: MIT License',
        'Operating System :: OS Independent',
        'Intended Audience :: Developers',
        'Topic :: Internet :: WWW/HTTP :: Dynamic Content',
    ],
    python_requires='>=3.10',
)
