#!/usr/bin/env python3
"""
Render the workshop as an HTML report.

Usage:
  python experiments/run_workshop.py --config config/workshop_config.yaml --output reports
"""

import sys
import logging
from datetime import datetime
from pathlib import Path

import yaml

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from workshop import build_report


def setup_logging(log_dir: Path, name: str):
    """Setup logging configuration."""
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / f"{name}_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )

    return logging.getLogger(__name__)


def main(config_path: str, output_dir: str = None) -> Path:
    if not Path(config_path).exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, 'r') as f:
        config = yaml.safe_load(f)

    workshop_cfg = config.get('workshop', {})
    logger = setup_logging(Path(workshop_cfg.get('logs_dir', 'logs')), 'workshop')

    output_dir = output_dir or workshop_cfg.get('output_dir', 'reports')
    logger.info(f"Building workshop report in {output_dir}")
    report = build_report(config, output_dir)
    logger.info(f"Done: {report}")
    return report


if __name__ == '__main__':
    import argparse

    parser = argparse.ArgumentParser(description='Render the missing data workshop report')
    parser.add_argument('--config', type=str, default='config/workshop_config.yaml',
                        help='Path to workshop config')
    parser.add_argument('--output', type=str, default=None,
                        help='Output directory (default: workshop.output_dir from config)')

    args = parser.parse_args()

    try:
        main(args.config, args.output)
    except Exception as e:
        logging.getLogger(__name__).error(f"Workshop report failed: {e}")
        sys.exit(1)
