# main.py
"""
Main entry point for the virtual map demo.
"""
import sys

from vmap.demo import main

if __name__ == '__main__':
    sys.exit(main())
