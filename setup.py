from setuptools import setup, find_packages

setup(
    name="canary-simulator",
    version="0.1.0",
    description="Discrete event simulator of a canary release process",
    author="adamfilli",
    packages=find_packages(include=["canarysim", "canarysim.*"]),
    install_requires=[
        "pandas",
    ],
    extras_require={
        "test": [
            "pytest",
            "matplotlib",
        ],
    },
    include_package_data=True,
    python_requires=">=3.11",
)
