"""Allow ``python -m amlang``."""

from amlang.cli import main

main()
