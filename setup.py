#!/usr/bin/env python
# -*- coding: utf-8 -*-
import os
import re

from setuptools import find_packages, setup

pkg_name = "cellgather"


def read_file(fname):
    with open(fname, "r", encoding="utf8") as f:
        return f.read()


def read_version():
    version_file = read_file(os.path.join("core", pkg_name, "version.py"))
    return re.search(r'^__version__ = "([^"]+)"', version_file, re.M).group(1)


requirements = read_file("requirements.txt").strip().split()

setup(
    name=pkg_name,
    version=read_version(),
    description="Backward slicing of notebook execution logs: gather the code a result depends on.",
    long_description=read_file("README.md"),
    long_description_content_type="text/markdown",
    package_dir={"": "core"},
    packages=find_packages("core", exclude=["test", "test.*"]),
    include_package_data=True,
    install_requires=requirements,
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
    license="BSD-3-Clause",
    zip_safe=False,
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: BSD License",
        "Natural Language :: English",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)

# python setup.py sdist bdist_wheel --universal
# twine upload dist/*
