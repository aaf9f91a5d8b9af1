"""
Melodex - Music catalog search with one-time profile onboarding.

Melodex keeps a small local profile record, then lets the user search a
public music catalog and browse a periodically refreshed list of popular
tracks through a JSON API.
"""

__version__ = "0.1.0"
__author__ = "Melodex Contributors"
__license__ = "MIT"

from melodex.app import MelodexApp

__all__ = ["MelodexApp", "__version__"]
