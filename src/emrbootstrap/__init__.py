"""
EMR Bootstrap - test installation provisioning for EMR platforms
"""

__version__ = "0.1.0"

from .core import Bootstrapper, BootstrapError

__all__ = ["Bootstrapper", "BootstrapError"]
