from setuptools import setup, find_packages

setup(
    name="breadsim",
    version="0.1.0",
    description="DC simulation engine for a virtual breadboard",
    author="Your Name",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "numpy",
        "networkx",
        "pydantic>=2",
        "pydantic-settings>=2"
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.8",
)
