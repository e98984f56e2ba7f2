from setuptools import setup, find_packages

setup(
    name="siemforward",
    version="1.0.0",
    description="Manage rsyslog forwarding blocks for remote SIEM collectors.",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "click>=8.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "siem-forward=siemforward.presentation.cli:cli",
        ],
    },
    python_requires=">=3.7",
)
