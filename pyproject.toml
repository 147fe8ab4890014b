[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rmeapi"
version = "0.1.0"
description = "Response envelopes, S3 storage helpers and MongoDB repositories for an electronic medical record API"
requires-python = ">=3.10"
keywords = ["medical-records", "mongodb", "repository", "api", "s3"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Database :: Front-Ends",
]
dependencies = [
    "pymongo>=4.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[tool.hatch.build.targets.wheel]
packages = ["rmeapi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
