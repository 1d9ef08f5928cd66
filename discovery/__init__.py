"""
discovery package.

Modules
───────
models        Pydantic corpus entities, TrendingTopic, TrendCacheEntry
scoring       tiered token relevance
searchers     post / user / ad / hashtag searchers and SearchResult
merger        widen the corpus with backend matches, de-duplicated by id
ranking       date-range filter and stable ordering
search        SearchOrchestrator and typeahead suggestions
trending      windowed hashtag aggregation with an in-process memo
trend_cache   backend trending topics behind a durable TTL cache
storage       SQLite-backed key-value store
backend       httpx client for the platform backend
service       DiscoveryService facade
clock         shared wall clock in epoch ms
"""
