"""
Food item recommendation engine.

Responsibilities:
- Derive a preference profile from a user's recent orders.
- Generate candidates with collaborative, content-based, popularity,
  trending and similar-item strategies.
- Deduplicate, score and rank candidates into a single list.
- Memoise ranked lists and user similarities with time-bounded caches.
"""
