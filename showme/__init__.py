"""ShowMe - render files and git diffs and serve them to the browser"""

__version__ = "1.0.0"
