"""Allow ``python -m signalapp``."""

from signalapp.main import run

run()
