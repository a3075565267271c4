from __future__ import annotations

from setuptools import find_packages, setup

setup(
    name="electron",
    version="0.1.0",
    description="Cartesian AO basis construction and core-Hamiltonian initial guess",
    packages=find_packages(include=["electron", "electron.*"]),
    python_requires=">=3.9",
    install_requires=[
        "numpy>=1.21",
        "basis_set_exchange>=0.9",
        "PyYAML>=5.1",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "electron=electron.cli.main:main",
            "electron-basis=electron.cli.summary:main",
        ],
    },
)
