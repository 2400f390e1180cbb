[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gavel"
version = "0.1.0"
description = "HTTP auction service over MongoDB that closes auctions automatically once their bidding window has passed"
requires-python = ">=3.10"
keywords = ["auction", "bids", "mongodb", "flask", "rest"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "flask>=2.2",
    "pymongo>=4.0",
    "python-dotenv>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
gavel = "gavel.app:main"

[tool.hatch.build.targets.wheel]
packages = ["gavel"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
