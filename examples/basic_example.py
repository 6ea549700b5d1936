#!/usr/bin/env python3
"""
Example script demonstrating the usage of autoflags.

Fields tagged with a "flag" metadata entry become command-line flags; the
dataclass defaults become the flag defaults.

    python basic_example.py -name "Jane Roe" -age 29 -timeout 90s extra args
"""

import logging
from dataclasses import dataclass, field
from datetime import timedelta

import autoflags
from autoflags import Uint


@dataclass
class UserConfig:
    """Configuration for the example program."""

    name: str = field(default="John Doe", metadata={"flag": "name,name of user"})
    age: Uint = field(default=Uint(34), metadata={"flag": "age"})
    timeout: timedelta = field(
        default=timedelta(minutes=1), metadata={"flag": "timeout,how long to wait"}
    )
    debug: bool = field(default=False, metadata={"flag": "debug,enable debug logging"})
    married: bool = False  # not exposed


def main() -> None:
    """Main function demonstrating the flags."""
    config = UserConfig()
    autoflags.define(config)
    autoflags.parse()

    logging.basicConfig(level=logging.DEBUG if config.debug else logging.INFO)

    print("Parsed Configuration:")
    print("-" * 30)
    print(f"Name: {config.name}")
    print(f"Age: {config.age}")
    print(f"Timeout: {autoflags.format_duration(config.timeout)}")
    print(f"Married: {config.married}")
    print(f"Remaining arguments: {autoflags.args()}")


if __name__ == "__main__":
    main()
