"""
Bank Core

A small in-process banking back-end: users own accounts, accounts move
through a verification lifecycle, and money moves between accounts via
deposit, withdrawal and transfer.
"""

__version__ = "1.0.0"
