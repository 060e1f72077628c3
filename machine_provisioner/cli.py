from __future__ import annotations

import argparse
import sys

USAGE_EXIT = 1


class ArgumentParser(argparse.ArgumentParser):
    """argparse with usage errors exiting 1, like every other failure here."""

    def error(self, message: str) -> None:  # type: ignore[override]
        self.print_usage(sys.stderr)
        self.exit(USAGE_EXIT, f"{self.prog}: error: {message}\n")
