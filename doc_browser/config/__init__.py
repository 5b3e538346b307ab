from .model import BrowserConfig
from .loader import load_browser_config

__all__ = ["BrowserConfig", "load_browser_config"]
