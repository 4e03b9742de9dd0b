"""installmod - content publication back end for the mod APK storefront."""

__version__ = "0.1.0"
