[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rocketmq-client"
version = "2.0.0"
description = "Message primitives, name server resolvers and queue selectors for a RocketMQ-style messaging client"
requires-python = ">=3.10"
dependencies = []
keywords = ["rocketmq", "messaging", "message-queue", "producer", "broker"]
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
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["rocketmq_client"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
