# infrastructure/demo/__init__.py
from infrastructure.demo.yaml_loader import DemoLoadError, YamlDemoLoader, parse_rest_line

__all__ = [
    "DemoLoadError",
    "YamlDemoLoader",
    "parse_rest_line",
]
