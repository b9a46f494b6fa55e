import setuptools
from setuptools import find_packages

with open("readme.md", "r") as fh:
    long_description = fh.read()


vars2find = ["__author__", "__version__", "__url__"]
vars2readme = {}
with open("./dirvault/__init__.py") as f:
    for line in f.readlines():
        for v in vars2find:
            if line.startswith(v):
                line = line.replace(" ", "").replace('"', "").replace("'", "").strip()
                vars2readme[v] = line.split("=")[1]

core_deps = [
    "pydantic>=2.0",
    "tenacity",
    "apscheduler>=3.10,<4",
]

api_deps = [
    "fastapi",
    "uvicorn",
    "pydantic-settings",
]

setuptools.setup(
    name="dirvault",
    url=vars2readme["__url__"],
    version=vars2readme["__version__"],
    author=vars2readme["__author__"],
    description="Point-in-time backups and staged restores for a live data directory",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["dirvault", "dirvault.*"]),
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    python_requires=">=3.9",
    install_requires=core_deps,
    extras_require={
        "api": api_deps,
        "test": [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
        "all": api_deps + [
            "pytest",
            "pytest-asyncio",
            "httpx",
        ],
    },
)
