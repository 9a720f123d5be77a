#!/usr/bin/env python
"""CLI entry point for streamline seed generation."""

from streamline_seeding.pipeline import main

if __name__ == "__main__":
    main()
