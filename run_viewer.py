#!/usr/bin/env python3
"""
TraceScope Viewer - Entry Point

Runs the standalone pygame trace viewer.
"""

import sys

from tracescope.viewer import main

if __name__ == '__main__':
    sys.exit(main())
