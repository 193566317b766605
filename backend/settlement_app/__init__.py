# settlement_app/ - settlement form intake: store, confirm, upload, ledger
from .app import create_app
