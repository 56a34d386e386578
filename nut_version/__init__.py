"""
NUT version helper.

Derives the project version from git metadata (or a static default when
building outside a git workspace) and reports it in the format a build
system asks for.

Key components:
- core.config: environment and VERSION_* file configuration
- services.git: thin typed wrapper around the git executable
- services.resolver: git-based and default-based version derivation
- services.report: output selectors and VERSION_DEFAULT cache updates
"""

__version__ = "0.1.0"
