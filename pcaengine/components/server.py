"""
Server component for the PCA engine.

This module provides a FastAPI server that runs PCA on request, for
presentation layers that cannot call the engine in-process.
"""

import logging
from typing import List, Optional

import fastapi
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from pcaengine import __version__
from pcaengine.components.config import Config, ConfigManager
from pcaengine.engine import perform_pca
from pcaengine.exceptions import DegenerateInputError, PCAError
from pcaengine.math.report import get_optimal_components

# Set up logging
logger = logging.getLogger(__name__)


# Define API models
class PCARequest(BaseModel):
    """PCA request model."""

    data: List[List[float]]
    n_components: int = 2
    normalize: Optional[bool] = None
    seed: Optional[int] = None


class OptimalComponentsRequest(BaseModel):
    """Optimal component count request model."""

    cumulative_variance: List[float]
    threshold: Optional[float] = None


class Server:
    """
    FastAPI server for the PCA engine.
    """

    def __init__(self, config: Optional[Config] = None):
        """
        Initialize a server.

        Args:
            config: Configuration for the server
        """
        self.config = config or ConfigManager.get_config()

        # Create FastAPI app
        self.app = FastAPI(
            title="PCA Engine API",
            description="Principal component analysis for dashboards",
            version=__version__
        )

        # Set up CORS
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        # Set up routes
        self._setup_routes()

        # Set up request validation
        self._setup_validation()

        # Set up error handling
        self._setup_error_handling()

    def _setup_routes(self) -> None:
        """
        Set up API routes.
        """
        # Health check
        @self.app.get("/health")
        async def health_check():
            return {"status": "ok"}

        # PCA
        @self.app.post("/api/v1/pca")
        def run_pca(request: PCARequest):
            result = perform_pca(
                request.data,
                request.n_components,
                request.normalize,
                random_state=request.seed,
                config=self.config
            )
            return result.to_dict()

        # Optimal component count
        @self.app.post("/api/v1/optimal-components")
        async def optimal_components(request: OptimalComponentsRequest):
            threshold = request.threshold
            if threshold is None:
                threshold = self.config.get('pca.variance-threshold', 0.95)

            n = get_optimal_components(request.cumulative_variance, threshold)
            return {"n_components": n, "threshold": threshold}

    def _setup_validation(self) -> None:
        """
        Set up request validation.
        """
        @self.app.exception_handler(fastapi.exceptions.RequestValidationError)
        async def validation_exception_handler(request, exc):
            return JSONResponse(
                status_code=422,
                content={"detail": str(exc)}
            )

    def _setup_error_handling(self) -> None:
        """
        Set up error handling.
        """
        @self.app.exception_handler(PCAError)
        async def pca_exception_handler(request, exc):
            error = "degenerate_input" if isinstance(exc, DegenerateInputError) else "invalid_input"
            logger.info(f"Rejected PCA request: {exc}")
            return JSONResponse(
                status_code=422,
                content={"detail": str(exc), "error": error}
            )

        @self.app.exception_handler(Exception)
        async def generic_exception_handler(request, exc):
            logger.exception("Unhandled exception")
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"}
            )

    def run(self) -> None:
        """
        Serve in the current thread until interrupted.
        """
        import uvicorn

        port = self.config.get('server.port', 8080)
        host = self.config.get('server.host', 'localhost')

        log_level = self.config.get('logging.level', 'info')
        if log_level == 'warn':
            log_level = 'warning'

        logger.info(f"Serving at http://{host}:{port}")
        uvicorn.run(
            self.app,
            host=host,
            port=port,
            log_level=log_level
        )

