"""sitedesk: project and phase tracking for electrical contracting sites."""

__version__ = "0.1.0"
