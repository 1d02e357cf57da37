[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "prreview"
version = "1.0.0"
description = "HTTP service that assigns pull request reviewers from a team, reassigns them and tracks merges"
requires-python = ">=3.10"
keywords = ["pull request", "code review", "reviewers", "teams", "rest api", "flask", "sqlite"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: WSGI :: Application",
    "Topic :: Software Development :: Version Control",
]
dependencies = [
    "flask>=2.3",
    "werkzeug>=2.3",
    "python-dotenv>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.4",
]

[project.scripts]
prreview = "prreview.app:main"

[tool.hatch.build.targets.wheel]
packages = ["prreview"]

[tool.hatch.build.targets.sdist]
include = ["prreview", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
check_untyped_defs = true
