# Infrastructure Adapters Package
from .yaml_store import YamlDeckRepository

__all__ = ["YamlDeckRepository"]
