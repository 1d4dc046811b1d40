"""
Workstation Setup
-----------------

Bootstraps a fresh Ubuntu workstation: system packages, dotfiles, pinned
third-party tools and language servers, and the final user configuration.
"""

APP_NAME = "Workstation Setup"
VERSION = "1.0.0"

__version__ = VERSION
