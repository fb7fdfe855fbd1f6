[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "shopcore"
version = "0.1.0"
description = "Commerce core: catalog CSV import, carts, customer accounts and anonymous sessions with in-memory repositories"
requires-python = ">=3.10"
dependencies = [
    "bcrypt",
]
keywords = ["commerce", "cart", "catalog", "csv", "import", "customers", "tokens"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["shopcore"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
