"""
dev_console: a keyboard-activated developer console for the terminal.
"""

__version__ = "0.1.0"
