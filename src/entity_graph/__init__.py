"""Entity relationship graph resolution.

Two ways of getting a graph:
- discovery against an oracle service (people <-> places co-occurrence)
- schema inference over an opaque relational source (users + connections)

and one way of querying it: unweighted shortest paths, locally (BFS) with an
optional Neo4j cross-check.
"""

__version__ = "0.1.0"
