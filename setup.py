"""
Setup script for the eposyn package.
"""
from setuptools import setup, find_packages

setup(
    name="eposyn",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "pandas",
        "scikit-learn",
        "joblib>=1.3",
        "tqdm",
    ],
    extras_require={
        "dev": [
            "pytest",
            "pytest-cov",
            "black",
            "mypy",
            "isort",
            "flake8",
        ],
        "polars": [
            "polars",
            "pyarrow>=12.0.0",
        ],
        "full": [
            "polars",
            "pyarrow>=12.0.0",
            "pytest",
            "pytest-cov",
            "black",
            "mypy",
            "isort",
            "flake8",
        ],
    },
    python_requires=">=3.10",
)
