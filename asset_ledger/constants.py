"""
Ledger constants shared by models, services and the API layer
"""

# Movement directions
WAREHOUSE_TO_SITE = 'warehouse_to_site'
SITE_TO_SITE = 'site_to_site'
SITE_TO_WAREHOUSE = 'site_to_warehouse'

DIRECTIONS = (WAREHOUSE_TO_SITE, SITE_TO_SITE, SITE_TO_WAREHOUSE)

DIRECTION_LABELS = {
    WAREHOUSE_TO_SITE: 'Warehouse → Site',
    SITE_TO_SITE: 'Site → Site',
    SITE_TO_WAREHOUSE: 'Site → Warehouse',
}

# Location classes for the derived current location
LOCATION_WAREHOUSE = 'warehouse'
LOCATION_SITE = 'site'

WAREHOUSE_LABEL = 'Main Warehouse'

# Condition snapshot values
CONDITIONS = ('good', 'fair', 'damaged', 'broken')
DEFAULT_CONDITION = 'good'

# Activity log actions
ACTION_CREATE = 'CREATE'
ACTION_UPDATE = 'UPDATE'
ACTION_CASCADE = 'CASCADE'
ACTION_DELETE = 'DELETE'
ACTION_REPAIR = 'REPAIR'
