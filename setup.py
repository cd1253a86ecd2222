"""
Setup script for pcaengine package.
"""

from setuptools import setup, find_packages

setup(
    name="pcaengine",
    version="0.1.0",
    packages=find_packages(include=["pcaengine", "pcaengine.*"]),
    install_requires=[
        # Core numerical dependencies
        "numpy>=1.20.0",
        "pandas>=1.3.0",
        "scikit-learn>=1.0.0",

        # Web server
        "fastapi>=0.70.0",
        "uvicorn>=0.15.0",
        "pydantic>=1.8.0",

        # Utilities
        "pyyaml>=6.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=6.0.0",
            "scipy>=1.7.0",
            "httpx>=0.23.0",
        ],
    },
    entry_points={
        'console_scripts': [
            'pcaengine=pcaengine.__main__:main',
        ],
    },
    description="Power-iteration PCA engine for exploratory dashboards",
    keywords="pca, principal component analysis, power iteration, dimensionality reduction",
    python_requires=">=3.8",
)
