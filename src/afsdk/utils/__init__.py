from afsdk.utils.env import load_dotenv_files
from afsdk.utils.logging import setup_logging
from afsdk.utils.merge import deep_merge

__all__ = [
    "load_dotenv_files",
    "setup_logging",
    "deep_merge",
]
