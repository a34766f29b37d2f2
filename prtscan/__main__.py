"""
Allow running as: python -m prtscan
"""

from .cli import main

if __name__ == "__main__":
    main()
