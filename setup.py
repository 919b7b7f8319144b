"""
Medici - course question data sync

Installation:
    pip install -e .

This installs the 'medici' command in your environment.
"""

from setuptools import setup, find_packages
import os

# Read README for long description
long_description = ''
if os.path.exists('README.md'):
    with open('README.md', 'r', encoding='utf-8') as f:
        long_description = f.read()

setup(
    name='medici-sync',
    version='1.0.0',
    description='Canonicalize course question files and sync changes to a remote store',
    long_description=long_description,
    long_description_content_type='text/markdown',
    license='MIT',

    # Only the medici package (and any subpackages)
    packages=find_packages(include=['medici', 'medici.*']),

    python_requires='>=3.10',

    # Dependencies
    install_requires=[
        'click>=8.2',
        'PyYAML>=6.0',
        'requests>=2.28',
    ],

    # Optional dependencies
    extras_require={
        'dev': [
            'pytest>=7.4',
            'pytest-cov>=4.1',
            'pytest-mock>=3.11',
        ],
    },

    # CLI entry point - this creates the 'medici' command
    entry_points={
        'console_scripts': [
            'medici=medici.cli:cli',
        ],
    },

    classifiers=[
        'Development Status :: 4 - Beta',
        'Intended Audience :: Education',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: Education',
    ],

    keywords='courses questions sync canonical hashing',
)
