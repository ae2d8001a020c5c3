#!/usr/bin/env python
# -*- coding: utf-8 -*-

import os
import re
from setuptools import setup

dir_path = os.path.dirname(os.path.realpath(__file__))

init_string = open(os.path.join(dir_path, 'py', 'minins',
                                '__init__.py')).read()
VERS = r"^__version__ = ['\"]([^'\"]*)['\"]"
mo = re.search(VERS, init_string, re.M)
__version__ = mo.group(1)

long_description = open(os.path.join(dir_path, 'README.md')).read()

setup(name="minins",
      version=__version__,
      packages=["minins"],
      license="MIT",
      description=("Multi-ellipsoidal nested sampling for computing Bayesian "
                   "posteriors and evidences."),
      long_description=long_description,
      long_description_content_type="text/markdown",
      package_data={"": ["README.md"]},
      package_dir={'': 'py/'},
      include_package_data=True,
      python_requires=">=3.8",
      install_requires=["numpy>=1.20", "scipy>=1.6", "requests", "tqdm"],
      extras_require={"test": ["pytest"]},
      entry_points={"console_scripts": ["minins=minins.cli:main"]},
      keywords=[
          "nested sampling", "ellipsoids", "clustering", "monte carlo",
          "bayesian", "inference", "modeling"
      ],
      classifiers=[
          "Development Status :: 3 - Alpha",
          "License :: OSI Approved :: MIT License",
          "Natural Language :: English", "Programming Language :: Python",
          "Operating System :: OS Independent",
          "Topic :: Scientific/Engineering",
          "Intended Audience :: Science/Research"
      ])
