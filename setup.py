"""Setup configuration for gradecord."""

from setuptools import setup, find_packages

setup(
    name="gradecord",
    version="0.0.1",
    description="Cached access to a Discord guild's tiered channel directory",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.12",
    install_requires=[
        "py-cord>=2.4",
        "python-dotenv>=1.0",
        "PyYAML>=6.0",
        "prompt_toolkit>=3.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "gradecord=gradecord.main:main",
        ],
    },
)
