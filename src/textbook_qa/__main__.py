"""Allow running as ``python -m textbook_qa``."""

from textbook_qa.cli import main

main()
