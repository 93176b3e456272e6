#!/usr/bin/env python3
"""Run the traffic client from a source checkout.

Usage: python main.py [options] <traffic configuration file>
"""

import sys

from traffic_gen.cli import main

if __name__ == "__main__":
    sys.exit(main())
