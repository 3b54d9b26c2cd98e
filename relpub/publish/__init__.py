"""Release artefact publication.

- artefacts: ARTEFACT kinds and token parsing
- descriptor: package identity (opam, dune-project, VCS, change log)
- archive / docs: distribution archive handling and doc build
- delegate / github / deprecated: publication backends
- orchestrator: ordering, eligibility and aggregation of the steps
"""

from __future__ import annotations
