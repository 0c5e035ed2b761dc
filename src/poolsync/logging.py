import logging

"""
Create the package logger. Modules log through this instance; applications may raise or lower the
level, e.g. `poolsync.logger.setLevel(logging.DEBUG)`.
"""

logger = logging.getLogger("poolsync")
logger.propagate = False
logger.setLevel(logging.INFO)
logger.addHandler(logging.StreamHandler())
