"""Services module - Business logic layer"""

from .config_manager import ConfigManager
from .content_store import TempArtifactStore
from .diff_generator import DiffGenerator
from .http_server import ContentServer
from .path_resolver import PathResolver
from .repository_locator import RepositoryLocator
from .show_diff import ShowDiffHandler
from .show_file import ShowFileHandler

__all__ = [
    "ConfigManager",
    "TempArtifactStore",
    "DiffGenerator",
    "ContentServer",
    "PathResolver",
    "RepositoryLocator",
    "ShowDiffHandler",
    "ShowFileHandler",
]
