from datetime import datetime, timezone

# (path, change frequency, priority) for the fixed pages
STATIC_PAGES = [
    ("", "daily", 1.0),
    ("/blog", "daily", 0.9),
    ("/about", "monthly", 0.5),
]


def build_sitemap(recipes, base_url, now=None):
    """Return sitemap entries for the fixed pages followed by every recipe."""
    now = now or datetime.now(timezone.utc)
    base_url = base_url.rstrip("/")
    entries = [
        {
            "url": f"{base_url}{path}",
            "lastmod": now,
            "changefreq": freq,
            "priority": priority,
        }
        for path, freq, priority in STATIC_PAGES
    ]
    for r in recipes:
        entries.append(
            {
                "url": f"{base_url}/recipes/{r.slug}",
                "lastmod": r.created_at,
                "changefreq": "monthly",
                "priority": 0.8,
            }
        )
    return entries
