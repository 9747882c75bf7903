"""
Phantom Guard - Utilities
=========================

Author: Phantom Guard Team
"""
