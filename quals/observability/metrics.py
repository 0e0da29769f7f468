"""
Observability metrics.

Tracks:
- Cache hit rate + invalidations
- Signup qualification mix (per group, trainees, not authorized)
"""
from quals.cache.derived import DerivedValueCache
from quals.positions.groups import GROUP_ORDER


def get_cache_metrics(cache: DerivedValueCache) -> dict:
    stats = cache.stats()
    lookups = stats["hits"] + stats["misses"]
    return {
        **stats,
        "hit_rate": (stats["hits"] / lookups * 100) if lookups > 0 else 0.0,
        "ttl_hours": cache.ttl.total_seconds() / 3600,
    }


def get_signup_metrics(entries: list) -> dict:
    """
    Qualification mix for a cached signup list (SignupEntry objects).
    """
    by_group = {g.value: 0 for g in GROUP_ORDER}
    for entry in entries:
        if entry.group is not None:
            by_group[entry.group.value] += 1

    total = len(entries)
    not_authorized = sum(1 for e in entries if e.group is None)

    return {
        "total_signups": total,
        "by_group": by_group,
        "not_authorized": not_authorized,
        "trainees": sum(1 for e in entries if e.trainee),
        "authorized_rate": ((total - not_authorized) / total * 100) if total > 0 else 0.0,
    }
