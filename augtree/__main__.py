"""Allow `python -m augtree`."""

from augtree.cli import main

main()
