from setuptools import setup, find_packages

setup(
    name="scenelang",
    version="0.1.0",
    description="Scene description language — parser, checker & formatter",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "hypothesis>=6.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "scenelang=scenelang.cli:main",
        ],
    },
)
