"""trellops: operational dashboard, map and statistics over a Trello board."""

__version__ = "0.3.2"
