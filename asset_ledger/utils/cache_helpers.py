"""
Cache helper utilities for master data lookups.
Unit and site references are validated on every movement write, so the
unit -> sites map is kept in the cache instead of querying both tables.
"""

from flask import current_app
from asset_ledger import cache

SITE_MAP_KEY = 'master_site_map'


def get_site_map(refresh=False):
    """
    Get ``{unit_id: {'is_active': bool, 'sites': {site_id: is_active}}}``.

    ``refresh`` skips the cached copy and rebuilds it from the database.
    """
    if not refresh:
        cached_map = cache.get(SITE_MAP_KEY)
        if cached_map is not None:
            return cached_map

    from asset_ledger.models import Unit, Site

    site_map = {
        unit.id: {'is_active': unit.is_active, 'sites': {}}
        for unit in Unit.query.all()
    }
    for site in Site.query.all():
        unit_entry = site_map.get(site.unit_id)
        if unit_entry is not None:
            unit_entry['sites'][site.id] = site.is_active

    cache.set(SITE_MAP_KEY, site_map, timeout=current_app.config['CACHE_DEFAULT_TIMEOUT'])
    return site_map


def invalidate_site_map():
    """Invalidate the cached unit/site map after master data changes."""
    cache.delete(SITE_MAP_KEY)


def get_name_lookup():
    """Unit and site names keyed by id, for read-only annotations"""
    cache_key = 'master_name_lookup'

    cached_names = cache.get(cache_key)
    if cached_names is not None:
        return cached_names

    from asset_ledger.models import Unit, Site

    names = {
        'units': {unit.id: unit.name for unit in Unit.query.all()},
        'sites': {site.id: site.name for site in Site.query.all()},
    }
    cache.set(cache_key, names, timeout=current_app.config['CACHE_DEFAULT_TIMEOUT'])
    return names


def invalidate_master_data():
    """Drop every cached master data lookup."""
    invalidate_site_map()
    cache.delete('master_name_lookup')
