from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="lnstore",
    version="0.1.0",
    author="lnstore developers",
    description="Persistence layer for a Lightning/RGB payment node",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["lnstore", "lnstore.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries",
        "Programming Language :: Python :: 3.11",
    ],
    python_requires=">=3.11",
    install_requires=[
        "sqlalchemy[asyncio]>=2.0",
        "aiosqlite>=0.19",
        "cryptography>=41.0",
        "mnemonic>=0.20",
        "pydantic>=2.5.0",
        "click>=8.1.0",
        "python-dotenv>=1.0.0",
        "colorlog>=6.7.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": [
            "lnstore=lnstore.cli.main:cli",
        ],
    },
)
