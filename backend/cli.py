#!/usr/bin/env python3
"""
Activity Image Generator CLI - entry point
"""

import os
import sys

# Make backend modules importable when run as a script
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))


def main():
    """CLI main function"""
    from cli_app import ActivityImageCLI

    app = ActivityImageCLI()
    sys.exit(app.run())


if __name__ == "__main__":
    main()
