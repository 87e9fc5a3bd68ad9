import os

from dotenv import dotenv_values

# environment variables override anything in the local dotenv file
CONFIG = {**dotenv_values(".env.tradejournal"), **os.environ}

# disk-backed stores are created as f"{CACHE_PREFIX}{name}"
CACHE_PREFIX = CONFIG.get("TRADEJOURNAL_CACHE_PREFIX") or "./tradejournal-"

# price updates moving more than this percent need a confirmation
PRICE_CHANGE_THRESHOLD = float(CONFIG.get("TRADEJOURNAL_PRICE_CHANGE_THRESHOLD") or 20)

# shares per option contract
CONTRACT_MULTIPLIER = 100
