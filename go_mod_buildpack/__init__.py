"""Go module buildpack contributor.

This package compiles a Go application with the host toolchain into a
cacheable module layer and stages the resulting binary, together with its
start command, into a launch layer.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
