from .settings import SimulationConfig, ConfigManager, ConfigFormat

__all__ = ['SimulationConfig', 'ConfigManager', 'ConfigFormat']
