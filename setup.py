"""
Setup Configuration for bayesnlme
=================================

Dependency groups, installation options and entry point configuration.

Key Features:
- Core dependencies for sampling and configuration (numpy, scipy, pyyaml, pandas)
- Development tooling via ``pip install bayesnlme[dev]``
- CLI entry point registration
"""

from pathlib import Path

from setuptools import find_packages, setup

# Get the directory containing setup.py
HERE = Path(__file__).parent.resolve()


def read_readme():
    """Read README file for long description."""
    readme_path = HERE / "README.md"
    if readme_path.exists():
        return readme_path.read_text(encoding="utf-8")
    return "Bayesian estimation in mixed nonlinear regression models by MCMC"


def read_version():
    """Read version from bayesnlme/__init__.py."""
    init_path = HERE / "bayesnlme" / "__init__.py"
    if init_path.exists():
        with open(init_path, encoding="utf-8") as f:
            for line in f:
                if line.startswith("__version__"):
                    return line.split("=")[1].strip().strip("\"'")
    return "1.0.0"


INSTALL_REQUIRES = [
    "numpy>=1.23.0",
    "scipy>=1.7.0",
    "pyyaml>=5.4.0",
    "pandas>=1.3.0",
]

EXTRAS_REQUIRE = {
    # Development dependencies
    "dev": [
        "pytest>=6.2.0",
        "pytest-cov>=2.12.0",
        "ruff>=0.0.290",
        "mypy>=0.910",
    ],
    "test": [
        "pytest>=6.2.0",
        "pytest-cov>=2.12.0",
    ],
}

EXTRAS_REQUIRE["all"] = sorted(set(sum(EXTRAS_REQUIRE.values(), [])))

ENTRY_POINTS = {
    "console_scripts": [
        "bayesnlme=bayesnlme.cli.main:main",
    ]
}

CLASSIFIERS = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Topic :: Scientific/Engineering :: Mathematics",
    "License :: OSI Approved :: MIT License",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Operating System :: OS Independent",
]

KEYWORDS = [
    "bayesian",
    "mcmc",
    "gibbs sampling",
    "metropolis",
    "mixed models",
    "nonlinear regression",
    "random effects",
    "crack growth",
    "growth curves",
]


setup(
    name="bayesnlme",
    version=read_version(),
    description="Bayesian estimation in mixed nonlinear regression models by MCMC",
    long_description=read_readme(),
    long_description_content_type="text/markdown",
    author="bayesnlme Development Team",
    packages=find_packages(include=["bayesnlme", "bayesnlme.*"]),
    include_package_data=True,
    install_requires=INSTALL_REQUIRES,
    extras_require=EXTRAS_REQUIRE,
    python_requires=">=3.10",
    entry_points=ENTRY_POINTS,
    classifiers=CLASSIFIERS,
    keywords=KEYWORDS,
    license="MIT",
    zip_safe=False,
    platforms=["any"],
)
