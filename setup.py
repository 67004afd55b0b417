"""gamemcts パッケージのビルドスクリプト

使用方法:
    pip install -e ".[test]"
"""

from setuptools import find_packages, setup

setup(
    name="gamemcts",
    version="0.1.0",
    description="Monte Carlo Tree Search for two-player perfect-information games",
    packages=find_packages(include=["gamemcts", "gamemcts.*"]),
    python_requires=">=3.8",
    install_requires=[
        "numpy",
        "pyyaml",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
