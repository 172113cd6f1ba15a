"""rss-digest: aggregate RSS/Atom feeds into one translated snapshot document."""

__version__ = "0.1.0"
