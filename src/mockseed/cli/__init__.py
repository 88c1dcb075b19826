"""mockseed CLI.

Commands:
- sample: one generated item from an OpenAPI document
- page: a page window over a generated collection
- cursor: a cursor window over a generated collection
- scan: endpoints and models recovered from a client package
"""

from mockseed.cli.main import app, main

__all__ = ["app", "main"]
