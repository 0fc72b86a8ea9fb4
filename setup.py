# flake8: noqa
from setuptools import setup, find_packages
from pathlib import Path

long_description = (Path(__file__).parent / "README.md").read_text()

exec(open("dynstruct/version.py").read())

setup(
    name="dynstruct",
    version=__version__,
    description="Population structure inference from genotypes sampled at multiple time points",
    packages=find_packages(include=["dynstruct", "dynstruct.*"]),
    python_requires=">=3.7",
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
        "matplotlib",
        "tqdm",
        "structlog",
        "fire",
    ],
    extras_require={"test": ["pytest"]},
    entry_points={"console_scripts": ["dynstruct=dynstruct.cli:cli"]},
    classifiers=[
        "Programming Language :: Python :: 3",
        "Topic :: Scientific/Engineering :: Bio-Informatics",
        "Intended Audience :: Science/Research",
    ],
    long_description=long_description,
    long_description_content_type="text/markdown",
)
