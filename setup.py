# setup.py
from setuptools import setup, find_packages

install_requires = [
    # --- CONFIGURATION ---
    "pydantic>=2.0.0",
    "pyyaml>=6.0.0",
    "python-dotenv>=1.0.0",

    # --- GEOCODING ---
    "httpx>=0.27.0",

    # --- CONSOLE ---
    "rich>=13.0.0",
]

extras_require = {
    # --- TESTS ---
    "test": [
        "pytest-asyncio==1.3.0",
        "pytest",
    ],
}

setup(
    name="locus",
    version="0.3.0",
    description="Locus|Location permission and update coordination",
    packages=find_packages(exclude=["tests", "tests.*"]),
    include_package_data=True,
    install_requires=install_requires,
    extras_require=extras_require,
    entry_points={
        "console_scripts": [
            "locus=locus.app.main:main",
        ],
    },
    python_requires=">=3.12",
)
