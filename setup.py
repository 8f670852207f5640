#!/usr/bin/env python
# -*- coding: utf-8 -*-

# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# - Run the command "pytest tests" to run the tests.
# - Run the command "pip install -e ." for a development install.
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx

import os
import re

from setuptools import setup, find_packages


# xxxxxxxxxx Get the project version xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
def get_version():
    """Get the project version.

    The version is read from the package __init__ file without importing
    the package, since its dependencies may not be installed yet.
    """
    init_file = os.path.join(os.path.dirname(__file__), 'pyprecoding',
                             '__init__.py')
    with open(init_file) as f:
        match = re.search(r"^__version__ = ['\"]?([^'\"\n]+)['\"]?$",
                          f.read(), re.M)
    return match.group(1)


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx

# xxxxxxxxxx Get a listof the packages in the project xxxxxxxxxxxxxxxxxxxxx
# The find_packages method returns a list with all Python packages found
# within directory (except the excluded ones). Using find_packages instead
# of writing the name of the packages directly guarantees that we won't
# forget a package which is added in the future.
packages = find_packages(where='.', exclude=['tests', 'apps'])

# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx


# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# Utility function to read the README file. Used for the long_description.
def read(fname):
    with open(os.path.join(os.path.dirname(__file__), fname)) as f:
        return f.read()


doc_requires = ["sphinx", "sphinx_rtd_theme"]
test_requires = ["pytest"]

# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx

# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxx Setup Configuration xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
# xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
setup(
    # xxxxxxxxxx Basic Package Information xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
    name="pyprecoding",
    version=get_version(),

    # Metadata for PyPI
    license="GNU General Public License (GPL)",
    keywords='MIMO precoding WMMSE MaxSINR coordinated beamforming',
    description=("Coordinated precoding algorithms for multi-cell MIMO "
                 "networks in python."),
    long_description=read("README.md"),
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Telecommunications Industry",
        "Intended Audience :: Education",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: GNU General Public License (GPL)",
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering",
    ],
    # xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
    packages=packages,
    package_data={'': ["README.md"]},
    python_requires=">=3.6",
    install_requires=[
        "numpy",
        "scipy",
        "configobj",
    ],
    # Use 'pip install pyprecoding[tests]' or 'pip install -e ".[dev]"'
    extras_require={
        "docs": doc_requires,
        "tests": test_requires,
        "dev": doc_requires + test_requires
    },
    # xxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxxx
)
