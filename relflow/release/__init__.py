"""Release domain: versions, refs, model, decisions and the step pipeline.

Everything here is free of git and network access; services in
``relflow.services`` combine these pieces with the git and HTTP adapters.
"""

from __future__ import annotations
