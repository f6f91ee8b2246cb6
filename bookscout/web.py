"""Minimal JSON API powered by FastAPI."""

from fastapi import FastAPI, HTTPException, Query

from bookscout.search import BookSearchEngine, get_default_engine

app = FastAPI(title="BookScout")

_engine: BookSearchEngine | None = None


def get_engine() -> BookSearchEngine:
    return _engine or get_default_engine()


def set_engine(engine: BookSearchEngine | None) -> None:
    """Swap the engine behind the API (tests, embedding)."""
    global _engine
    _engine = engine


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


@app.get("/search")
async def search(
    q: str = Query(""),
    max_results: int = Query(20, ge=1, le=100),
    language: str = Query("any", pattern="^(zh|en|any)$"),
) -> dict:
    if not q.strip():
        raise HTTPException(status_code=400, detail="Please enter a search query.")

    report = await get_engine().search_with_report(q, max_results, language)
    return {
        "query": q,
        "total": len(report.books),
        "books": [b.to_dict() for b in report.books],
        "sources": report.source_counts,
        "errors": report.errors,
        "cached": report.cache_hit,
    }
