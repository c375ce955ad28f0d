"""Setup configuration for modfilter."""

from setuptools import setup, find_packages

setup(
    name="modfilter",
    version="0.1.0",
    description="Blocklist and LLM based message moderation helpers",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    package_data={"modfilter.data": ["blocked_terms.txt"]},
    python_requires=">=3.11",
    install_requires=[
        "openai>=1.40",
        "jsonschema>=4.0",
        "PyYAML>=6.0",
        "python-dotenv>=1.0",
        "prompt_toolkit>=3.0",
        "pydantic>=2.0",
        "click>=8.0",
        "rich>=13.0",
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
            "modfilter=modfilter.main:main",
        ],
    },
)
