# Blueprint imports
from asset_ledger.views.main import bp

# API blueprint imports
from asset_ledger.views.api_movements import bp
from asset_ledger.views.api_assets import bp
from asset_ledger.views.api_integrity import bp
