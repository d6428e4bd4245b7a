from .base import BaseSettings


class TemplateSettings(BaseSettings):
    llm_path: str = "marginalia/templates/llm"
