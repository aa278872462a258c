from pathlib import Path
import re

from setuptools import find_packages, setup


ROOT = Path(__file__).parent


def read_version(root: Path) -> str:
    """Return ``__version__`` from the package without importing it."""
    text = (root / "limit_order_fees" / "__init__.py").read_text(encoding="utf-8")
    match = re.search(r'^__version__\s*=\s*"([^"]+)"', text, re.MULTILINE)
    if not match:
        raise RuntimeError("limit_order_fees.__version__ not found")
    return match.group(1)


setup(
    name="limit-order-fees",
    version=read_version(ROOT),
    description="Jupiter limit order ingestion and fee bucketing for Solana tokens",
    python_requires=">=3.10",
    packages=find_packages(include=["limit_order_fees", "limit_order_fees.*"]),
    install_requires=[
        "solana>=0.36",
        "solders>=0.21",
        "aiohttp>=3.8",
        "pydantic>=2.0",
        "orjson>=3.9",
        "base58>=2.1",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "limit-order-fees=limit_order_fees.cli:main",
        ],
    },
)
