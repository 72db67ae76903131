# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="assetdeps",
    version="0.1.0",
    description="Asset dependency graph scanner with reachability queries and history lookup",
    author="Enrique Paredes",
    author_email="eparedesbalen@gmail.com",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["assetdeps", "assetdeps.*"]),
    python_requires=">=3.8",
    install_requires=[
        "GitPython",  # History provenance search
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'assetdeps-cli=assetdeps.interface.cli.app:main',
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
