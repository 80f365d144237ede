"""
Setuptools build script for qai.

This file allows installation of the ``qai`` package via
``pip install .``.  It declares the required dependencies and
registers a console script entry point named ``qai``.  When
installed, add ``eval "$(qai shell-init zsh)"`` to ``.zshrc`` to
enable AI mode in the shell.
"""

from setuptools import setup, find_packages

setup(
    name="qai",
    version="0.3.0",
    description="Natural language to shell commands via LLM, inside the zsh line editor",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click>=8.0",
        "PyYAML>=5.4",
        "requests>=2.25",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "qai=qai.cli:main",
        ],
    },
    include_package_data=True,
    package_data={"qai": ["data/system.pmt"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX",
    ],
)
