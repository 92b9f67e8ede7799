[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "scrapeblocker"
version = "1.0.2"
description = "Agent that blocks URLs and suspends monitored applications while no customer interaction is open in the browser."
requires-python = ">=3.10"
keywords = [
    "monitoring",
    "hosts-file",
    "url-blocking",
    "process-suspension",
    "chrome-devtools",
    "websocket",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: Microsoft :: Windows",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]
dependencies = [
    "psutil",
    "requests",
    "websocket-client",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[project.scripts]
scrapeblocker = "scrapeblocker.app:main"

[tool.hatch.build.targets.wheel]
packages = ["scrapeblocker"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
ignore_missing_imports = true
