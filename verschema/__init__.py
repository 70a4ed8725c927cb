"""
verschema - compiler for versioned schema definitions.

A schema file declares struct, node and enum types whose shape may change
across an integer version sequence. The compiler resolves every version
annotation, rebuilds one Module snapshot per version number, and proves the
annotations are consistent before any backend consumes the result.

Pipeline:
    ┌──────────────┐     ┌──────────────┐     ┌─────────────────┐
    │  Front end   │────▶│ Declarations │────▶│ Timeline builder│
    │ (parser/JSON)│     │  (immutable) │     │ (range resolver)│
    └──────────────┘     └──────────────┘     └────────┬────────┘
                                                       │ modules
                        ┌──────────────────────────────┼─────────────┐
                        ▼                              ▼             ▼
                   ┌──────────┐                 ┌──────────┐   ┌──────────┐
                   │  Names   │                 │  Enums   │   │Type graph│
                   │ overlap  │                 │          │   │          │
                   └──────────┘                 └──────────┘   └──────────┘

Invariants:
    - Declarations are never mutated after parsing
    - Declaration order is part of the contract (ties, forward references)
    - The first error aborts compilation; there are no partial results

How to change safely:
    - New checks must run after the timeline is built
    - Keep error codes stable; tools match on them
"""

from ._version import __version__

__all__ = ["__version__"]
