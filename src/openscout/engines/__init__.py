"""Search engine layer — Pluggable backends driven by the query builder.

Built-in engines:
  - collection: in-memory matching over the primary datastore
  - database: matching and pagination as primary-datastore queries
  - meilisearch: MeiliSearch REST API (instant, typo-tolerant search)
  - null: matches nothing (search disabled)

Implement ``SearchEngine`` to connect your own search backend and register
it with ``EngineManager.register()``.
"""
