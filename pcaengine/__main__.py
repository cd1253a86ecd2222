"""
Main entry point for the PCA engine.

Runs PCA on a CSV file, or serves the engine over HTTP.
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

import pandas as pd

from pcaengine.components.config import Config, ConfigManager, load_config_file
from pcaengine.engine import perform_pca
from pcaengine.exceptions import PCAError
from pcaengine.math.corr import correlation_pairs, feature_statistics
from pcaengine.math.report import top_features

logger = logging.getLogger(__name__)


def setup_logging(level: str = 'INFO') -> None:
    """
    Set up logging.

    Args:
        level: Logging level
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.StreamHandler()
        ]
    )


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command line arguments.

    Args:
        argv: Arguments to parse (defaults to sys.argv)

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(description='PCA Engine')

    parser.add_argument(
        '--config',
        help='Path to configuration file'
    )

    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
        help='Logging level (defaults to the configured logging.level)'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    run = subparsers.add_parser('run', help='Run PCA on a CSV file')
    run.add_argument('input', help='CSV file with one sample per row and one numeric feature per column')
    run.add_argument('-k', '--n-components', type=int, default=2, help='Number of components')
    run.add_argument('--no-normalize', action='store_true', help='Center the data without scaling')
    run.add_argument('--seed', type=int, help='Seed for the solver start vectors')
    run.add_argument('--iters', type=int, help='Power iterations per component')
    run.add_argument('--threshold', type=float, help='Variance threshold for the suggested component count')
    run.add_argument('--no-header', action='store_true', help='The CSV file has no header row')
    run.add_argument('-o', '--output', help='Write the JSON result here instead of stdout')

    serve = subparsers.add_parser('serve', help='Serve the engine over HTTP')
    serve.add_argument('--port', type=int, help='Server port')
    serve.add_argument('--host', help='Server host')

    return parser.parse_args(argv)


def run_command(args: argparse.Namespace, config: Config) -> int:
    """
    Run PCA on a CSV file and emit the result as JSON.

    Args:
        args: Parsed arguments
        config: Configuration

    Returns:
        Process exit code
    """
    try:
        df = pd.read_csv(args.input, header=None if args.no_header else 'infer')
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error(f"Could not read {args.input}: {e}")
        return 1

    feature_names = [str(c) for c in df.columns]

    try:
        result = perform_pca(
            df,
            args.n_components,
            False if args.no_normalize else None,
            iters=args.iters,
            random_state=args.seed,
            config=config
        )
    except PCAError as e:
        logger.error(f"PCA failed: {e}")
        return 1

    threshold = args.threshold
    if threshold is None:
        threshold = config.get('pca.variance-threshold', 0.95)

    output = result.to_dict()
    output['featureNames'] = feature_names
    output['optimalComponents'] = result.optimal_components(threshold)
    output['featureStatistics'] = feature_statistics(result.original_data, feature_names).to_dict(orient='index')
    output['correlationPairs'] = correlation_pairs(result.correlation_matrix, feature_names)
    output['topFeatures'] = top_features(result.loadings, feature_names=feature_names)

    if args.output:
        with open(args.output, 'w') as f:
            json.dump(output, f)
        logger.info(f"Wrote result to {args.output}")
    else:
        json.dump(output, sys.stdout)
        sys.stdout.write('\n')

    return 0


def serve_command(config: Config) -> int:
    """
    Serve the engine over HTTP until interrupted.

    Args:
        config: Configuration

    Returns:
        Process exit code
    """
    # Import here so the run command does not need the web stack loaded
    from pcaengine.components.server import Server

    Server(config).run()
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.
    """
    # Parse arguments
    args = parse_args(argv)

    # Create overrides from the configuration file and arguments
    overrides = {}
    if args.config:
        overrides.update(load_config_file(args.config))

    if args.log_level:
        overrides.setdefault('logging', {})['level'] = args.log_level.lower()

    if args.command == 'serve':
        if args.port:
            overrides.setdefault('server', {})['port'] = args.port
        if args.host:
            overrides.setdefault('server', {})['host'] = args.host

    # Initialize configuration
    config = ConfigManager.get_config(overrides)

    # Set up logging
    setup_logging(config.get('logging.level', 'warn'))

    if args.command == 'serve':
        return serve_command(config)
    return run_command(args, config)


if __name__ == '__main__':
    sys.exit(main())
