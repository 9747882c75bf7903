"""
Phantom Guard
=============

Discord security bot: sliding-window detection of destructive admin
actions, raids and spam, with automatic punishment and alerts.

Author: Phantom Guard Team
"""

__version__ = "1.0.0"
