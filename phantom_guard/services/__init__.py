"""
Phantom Guard - Services
========================

Author: Phantom Guard Team
"""
