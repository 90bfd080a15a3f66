"""Foundation domain - base config, errors and logging.

Everything else in mastercleaner imports from here; nothing here imports
from the analysis or storage layers.
"""
