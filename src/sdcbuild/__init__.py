"""sdcbuild - build orchestrator for single-directory-component themes.

Compiles theme styles and scripts, then moves each component's compiled
output back into the component's own directory.
"""

__version__ = "0.3.0"
