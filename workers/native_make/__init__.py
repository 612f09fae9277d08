"""
native_make — incremental native build orchestrator.

Compiles stale translation units in parallel into a content-addressed
object cache, then links them into a shared library or executable.
"""

__version__ = "0.1.0"
PACKAGE_NAME = "native_make"
SCHEMA_VERSION = "0.1"
