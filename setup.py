"""Setup configuration for the AntiToxicity chat moderation engine."""

from setuptools import setup, find_packages

setup(
    name="antitox",
    version="0.1.0",
    description="AI-driven chat moderation: batched toxicity analysis with repeat-offender escalation",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.11",
    install_requires=[
        "openai>=1.40",
        "jsonschema>=4.0",
        "PyYAML>=6.0",
        "py-cord>=2.5",
        "aiohttp>=3.9",
        "aiosqlite>=0.19",
        "prompt_toolkit>=3.0",
        "python-dotenv>=1.0",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
            "pytest-asyncio>=0.23",
            "httpx",
        ],
    },
    entry_points={
        "console_scripts": [
            "antitox=antitox.main:main",
        ],
    },
)
