# setup.py
from setuptools import setup, find_packages

setup(
    name="site_watch",
    version="0.1.0",
    description="Asynchronous URL availability monitor SiteWatch",
    packages=find_packages(include=["site_watch", "site_watch.*"]),
    package_data={"site_watch": ["templates/*.j2"]},
    include_package_data=True,
    install_requires=[
        "aiohttp>=3.9",
        "click>=8.1",
        "jinja2>=3.1",
        "pydantic>=2.5",
        "PyYAML>=6.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.4",
            "pytest-asyncio>=0.23",
        ],
    },
    entry_points={
        "console_scripts": ["site-watch=site_watch.cli:cli"],
    },
    python_requires=">=3.11",
)
