"""relpub: publish release artefacts of opam/dune packages."""

__version__ = "0.1.0"
