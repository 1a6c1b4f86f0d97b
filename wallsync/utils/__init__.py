"""
Utilities

Logging setup and file helpers.

Author: WallSync Project
License: MIT
"""
