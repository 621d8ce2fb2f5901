[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tutorialgen"
version = "0.1.0"
description = "Generate tutorial documents by running their code blocks in chained Docker builds and capturing the output"
requires-python = ">=3.10"
dependencies = []
keywords = ["documentation", "tutorial", "docker", "markdown", "generator", "checksum"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Documentation",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
docs-generator = "tutorialgen.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tutorialgen"]

[tool.pytest.ini_options]
addopts = "-ra"
