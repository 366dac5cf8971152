"""
dirfinder - Core Package

Jump to a directory inside a large source tree by a short query, backed by a
persistent cache of the tree's directories and their modification times.
"""

__version__ = "0.1.0"
__author__ = "dirfinder Team"
