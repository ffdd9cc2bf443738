"""
publish_nuget package

This package implements a CI step that publishes a NuGet package only when its
version is not already present in the target registry.

Key responsibilities are split across modules:
- `settings.py`: read action inputs into an immutable `Settings`
- `sources.py`: make sure `dotnet nuget` knows the target registry
- `version.py`: resolve the version (static input or regex over a file)
- `registry_client.py`: isolated registry HTTP API interactions (version lookup)
- `publisher.py`: build -> pack -> sign -> push -> outputs -> tag
- `action.py`: orchestration and the continue-on-error policy
- `cli.py`: CLI entrypoint
"""

from __future__ import annotations

__all__ = ["__version__"]

__version__ = "0.1.0"
