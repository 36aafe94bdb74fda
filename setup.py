#!/usr/bin/env python

import setuptools

exclude_packages = ["test.*", "test"]
package_list = setuptools.find_packages(exclude=exclude_packages)

VERSION = {}
with open('ptydm/version.py') as f:
    exec(f.read(), VERSION)

setuptools.setup(
    name='ptydm',
    version=VERSION['version'],
    author='PTYDM team',
    description='Difference map iteration for ptychographic reconstruction',
    packages=package_list,
    python_requires='>=3.8',
    install_requires=['numpy', 'scipy'],
    extras_require={
        'test': ['pytest'],
        'gpu': ['cupy'],
    },
)
