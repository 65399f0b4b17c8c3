"""Entry point for running refscope as a module.

Usage:
    python -m refscope file path/to/module.py --server pylsp
"""

from refscope.cli import main

if __name__ == "__main__":
    main()
