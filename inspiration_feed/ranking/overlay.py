"""
Viewer overlay and client-side filters.

annotate()       stamps has_liked / has_saved from the viewer's id sets
search_filter()  case-insensitive substring match on caption, author handle
                 and linked outfit / clothing-item name
saved_filter()   keeps only saved posts (saved tab)
"""
from inspiration_feed.ranking.types import ScoredPost, ViewerContext


def annotate(posts: list[ScoredPost], viewer: ViewerContext) -> list[ScoredPost]:
    liked = viewer.liked_ids
    saved = viewer.saved_ids
    return [
        p.model_copy(update={"has_liked": p.id in liked, "has_saved": p.id in saved})
        for p in posts
    ]


def _matches(post: ScoredPost, needle: str) -> bool:
    haystacks = (post.caption, post.author.username, post.linked_name)
    return any(h and needle in h.lower() for h in haystacks)


def search_filter(posts: list[ScoredPost], query: str | None) -> list[ScoredPost]:
    needle = (query or "").strip().lower()
    if not needle:
        return list(posts)
    return [p for p in posts if _matches(p, needle)]


def saved_filter(posts: list[ScoredPost]) -> list[ScoredPost]:
    return [p for p in posts if p.has_saved]
