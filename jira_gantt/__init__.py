"""Convert Jira CSV exports into Gantt schedule documents."""

__version__ = "2.0.1"
