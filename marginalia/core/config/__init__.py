__all__ = [
    "CacheSettings",
    "CacheTTLSettings",
    "ContentSettings",
    "GitHubSettings",
    "LLMSettings",
    "LoggingSettings",
    "ModelSettings",
    "PipelineSettings",
    "ProviderType",
    "Secrets",
    "Settings",
    "StorageSettings",
    "TemplateSettings",
    "ThrottleSettings",
    "WebPageSettings",
    "WebSettings",
    "WindowSettings",
]


from .cache import CacheSettings, CacheTTLSettings
from .content import ContentSettings, GitHubSettings, WebPageSettings
from .llm import LLMSettings, ModelSettings, ProviderType
from .logging import LoggingSettings
from .pipeline import PipelineSettings
from .secrets import Secrets
from .settings import Settings
from .storage import StorageSettings
from .template import TemplateSettings
from .throttle import ThrottleSettings, WindowSettings
from .web import WebSettings
