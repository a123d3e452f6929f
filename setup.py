from setuptools import setup, find_packages

setup(
    name="quant_finance_engine",
    version="0.1.0",
    description="Bond time-value-of-money and return-series statistics engine",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "pandas",
        "scipy",
        "structlog",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
)
