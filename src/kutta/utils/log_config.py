"""Logging set-up shared by every kutta module.

Importing this module configures the root handler once and exposes the
package logger.  Per-step controller detail is emitted at DEBUG, run
summaries at INFO and non-convergence at ERROR.
"""

import logging
import sys

def setup_logging(level=logging.INFO, format_string='%(asctime)s - %(name)s - %(levelname)s - %(message)s'):
    """Configures basic logging to stdout."""
    logging.basicConfig(
        level=level,
        format=format_string,
        stream=sys.stdout  # Explicitly set stream to stdout
    )

# Setup logging when this module is imported
setup_logging()

# Package logger; raise it to DEBUG to trace accepted and rejected sub-steps
logger = logging.getLogger("kutta")
