#!/usr/bin/env python3
"""
Example demonstrating custom flag values and config files with autoflags.

Any field whose value implements `set(text)` and `__str__` is exposed with its
own parsing. Values can also be loaded from a YAML or JSON file before the
command line is parsed, so the command line wins.
"""

import sys
from dataclasses import dataclass, field

from autoflags import ErrorHandling, FlagSet, define_with_registry


class Hosts:
    """Collects hosts from repeated -host flags or comma separated lists."""

    def __init__(self) -> None:
        self.hosts: list[str] = []

    def set(self, text: str) -> None:
        self.hosts.extend(h for h in text.split(",") if h)

    def __str__(self) -> str:
        return ",".join(self.hosts)


@dataclass
class ClientConfig:
    hosts: Hosts = field(default_factory=Hosts, metadata={"flag": "host,`address` to contact"})
    retries: int = field(default=3, metadata={"flag": "retries,attempts per host"})


if __name__ == "__main__":
    config = ClientConfig()
    flags = FlagSet("client", ErrorHandling.EXIT)
    define_with_registry(flags, config)

    # Simulate a config file followed by command-line arguments
    if len(sys.argv) > 1 and sys.argv[1].endswith((".yaml", ".yml", ".json")):
        flags.parse_config_file(sys.argv[1])
        rest = flags.parse(sys.argv[2:])
    else:
        rest = flags.parse(["-host", "a.example,b.example", "-host=c.example", "-retries", "5"])

    print(f"hosts:   {config.hosts.hosts}")
    print(f"retries: {config.retries}")
    print(f"args:    {rest}")
