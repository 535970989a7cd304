[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "billingengine"
version = "0.1.0"
description = "Weekly-instalment loan billing engine with a small JSON HTTP service"
requires-python = ">=3.10"
dependencies = []
keywords = ["billing", "loans", "instalments", "emi", "delinquency", "accounting", "wsgi"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial :: Accounting",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
billingengine-server = "billingengine.server:main"

[tool.hatch.build.targets.wheel]
packages = ["billingengine"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
