[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "productapi"
version = "1.0.0"
description = "A small in-memory JSON product catalogue HTTP service with a matching client"
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "rest", "api", "json", "products", "wsgi", "client"]
classifiers = [
    "Development Status :: 4 - Beta",
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

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
productapi = "productapi.server:main"

[tool.hatch.build.targets.wheel]
packages = ["productapi"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
