"""
PCA engine package.

Principal component analysis with power iteration, producing every
statistic a dashboard needs to plot and explain the decomposition.
"""

__version__ = '0.1.0'

from pcaengine.components.config import Config, ConfigManager
from pcaengine.engine import PCAResult, max_components, perform_pca, save_result_to_json
from pcaengine.exceptions import DegenerateInputError, PCAError, ValidationError
from pcaengine.math.report import get_optimal_components
