"""droidctl - reversible debloating of Android devices over ADB."""

__version__ = "0.1.0"
