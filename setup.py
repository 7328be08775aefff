#!/usr/bin/env python3
"""
Patrol Nav - Setup Script
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read README
readme_path = Path(__file__).parent / "README.md"
long_description = ""
if readme_path.exists():
    long_description = readme_path.read_text(encoding="utf-8")

setup(
    name="patrol-nav",
    version="0.1.0",
    description="Symbolic-plan driven patrol mission for a mobile robot",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Intended Audience :: Science/Research",
        "License :: OSI Approved :: MIT License",
        "Operating System :: POSIX :: Linux",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering",
        "Topic :: Scientific/Engineering :: Artificial Intelligence",
    ],
    package_dir={"": "."},
    packages=find_packages(where=".", include=["patrol_nav", "patrol_nav.*",
                                               "simulation", "simulation.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pyyaml>=6.0",
        "flask>=2.0.0",
        "flask-cors>=3.0.0",
        "requests>=2.25.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "patrol-nav-server=patrol_nav.server.main:main",
            "patrol-nav=patrol_nav.cli.main:main",
        ],
    },
    include_package_data=True,
    package_data={
        "simulation": ["scenarios/*.yaml"],
    },
)
