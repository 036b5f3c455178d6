"""sandboxctl — recipe-driven sandbox provisioning for the platform CLI."""

__version__ = "0.4.0"
