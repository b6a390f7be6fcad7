"""Allow ``python -m insightboard``."""

from insightboard.cli import main

main()
