[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "archlab"
version = "0.1.0"
description = "Unix V6 disk image reader, a small ARM instruction simulator and companion systems tools"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "unix-v6",
    "filesystem",
    "disk-image",
    "inode",
    "arm",
    "simulator",
    "computer-architecture",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Filesystems",
    "Topic :: System :: Emulators",
    "Topic :: Education",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
v6fs-access = "archlab.v6fs.diskimageaccess:main"
arm-sim = "archlab.arm.armshell:main"
pipe-shell = "archlab.pipeshell:main"

[tool.hatch.build.targets.wheel]
packages = ["archlab"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
