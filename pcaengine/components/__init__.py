"""
Supporting components for the PCA engine.
"""

from pcaengine.components.config import Config, ConfigManager
